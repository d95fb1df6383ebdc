from enum import Enum


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CycleType(str, Enum):
    """Bucketed cycle duration driving every per-bird lookup."""
    SHORT = "short"
    STANDARD = "standard"
    EXTENDED = "extended"


class TaskCategory(str, Enum):
    FEEDING = "feeding"
    CLEANING = "cleaning"
    HEALTH = "health"
    MONITORING = "monitoring"


class TipTopic(str, Enum):
    TEMPERATURE = "temperature"
    FEEDING = "feeding"
    CLEANING = "cleaning"
    VACCINATION = "vaccination"
    # Opts a template out of beginner tips, keyword matching included
    NONE = "none"


class PlanStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Nominal length of each cycle, used for labels and for the seed catalog
CYCLE_NOMINAL_DAYS = {
    CycleType.SHORT: 21,
    CycleType.STANDARD: 30,
    CycleType.EXTENDED: 45,
}


def determine_cycle_type(duration_days: int) -> CycleType:
    if duration_days <= 21:
        return CycleType.SHORT
    if duration_days <= 30:
        return CycleType.STANDARD
    return CycleType.EXTENDED
