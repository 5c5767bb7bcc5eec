import enum


class Objective(str, enum.Enum):
    ATTRACTION = "ATTRACTION"
    NURTURE = "NURTURE"
    CONVERSION = "CONVERSION"


class ContentType(str, enum.Enum):
    EDUCATIONAL = "EDUCATIONAL"
    STORY = "STORY"
    CONVERSION = "CONVERSION"


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
