from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ecoloop.core.enums import (
    CYCLE_NOMINAL_DAYS,
    CycleType,
    ExperienceLevel,
    TaskCategory,
    TipTopic,
)
from ecoloop.core.logging import get_logger
from ecoloop.db import Base, SessionLocal, engine
from ecoloop.models.task import TaskTemplate

logger = get_logger(module="seed_data")

FEEDING = TaskCategory.FEEDING.value
CLEANING = TaskCategory.CLEANING.value
HEALTH = TaskCategory.HEALTH.value
MONITORING = TaskCategory.MONITORING.value

# (day, category, critical, title, description, minutes, topic)
# topic None lets the generator match tips on keywords; TipTopic.NONE means no tip
TemplateRow = Tuple[int, str, bool, str, str, int, Optional[str]]

# Weeks 1 and 2 are the same whatever the cycle length
BROODING_TEMPLATES: List[TemplateRow] = [
    (1, CLEANING, True, "Poultry House Preparation",
     "Clean and disinfect poultry house before chick arrival", 120, TipTopic.CLEANING.value),
    (1, MONITORING, True, "Equipment Verification",
     "Check feeders, drinkers and heating system", 30, TipTopic.NONE.value),
    (1, MONITORING, True, "Chick Arrival",
     "Receive the {flock_size} chicks and install them properly", 60, None),
    (1, FEEDING, True, "First Feeding",
     "Give first starter feed to the {flock_size} chicks", 30, TipTopic.FEEDING.value),
    (2, MONITORING, True, "Temperature Control",
     "Maintain temperature at 32-34°C", 15, TipTopic.TEMPERATURE.value),
    (3, FEEDING, False, "Feeding 3x/day",
     "Distribute starter feed 3 times per day", 45, TipTopic.FEEDING.value),
    (4, CLEANING, False, "Drinker Cleaning",
     "Clean and refill water drinkers", 20, TipTopic.CLEANING.value),
    (5, HEALTH, True, "Health Check",
     "Check health status of the {flock_size} chicks", 30, None),
    (6, CLEANING, False, "Partial Litter Change",
     "Change wet areas of litter", 40, TipTopic.CLEANING.value),
    (7, MONITORING, True, "Weekly Weighing",
     "Weigh sample of chicks to monitor growth", 30, None),
    (8, FEEDING, True, "Feed Transition",
     "Start transition to grower feed", 30, TipTopic.FEEDING.value),
    (10, HEALTH, True, "Vaccination (if needed)",
     "Administer vaccines according to health program", 60, TipTopic.VACCINATION.value),
    (11, MONITORING, False, "Temperature Adjustment",
     "Reduce temperature to 28-30°C", 15, TipTopic.TEMPERATURE.value),
    (12, CLEANING, False, "Complete Cleaning",
     "Thorough cleaning of poultry house", 90, TipTopic.CLEANING.value),
    (13, MONITORING, False, "Growth Control",
     "Check chicken development", 20, None),
    (14, CLEANING, False, "Equipment Disinfection",
     "Disinfect feeders and drinkers", 45, TipTopic.CLEANING.value),
    (14, MONITORING, True, "Weekly Weighing",
     "Second control weighing", 30, None),
]

# Day offsets counted back from the nominal cycle end (0 = sale day)
FINISHING_TEMPLATES: List[TemplateRow] = [
    (6, FEEDING, True, "Finisher Feed",
     "Switch to finisher feed", 30, TipTopic.FEEDING.value),
    (5, MONITORING, False, "Sale Preparation",
     "Identify potential buyers for the {flock_size} chickens", 60, None),
    (3, MONITORING, True, "Final Weight Control",
     "Check average weight of chickens", 30, None),
    (2, CLEANING, False, "Final Cleaning",
     "Last cleaning before sale", 60, TipTopic.CLEANING.value),
    (1, MONITORING, False, "Transport Preparation",
     "Organize transport to market/client", 45, None),
    (1, FEEDING, True, "Pre-slaughter Fasting",
     "Stop feeding 12h before sale", 10, TipTopic.NONE.value),
    (0, MONITORING, True, "Sale/Slaughter",
     "Sell or slaughter the {flock_size} chickens", 240, None),
]

# Day offsets counted forward from the nominal cycle end
SANITARY_REST_TEMPLATES: List[TemplateRow] = [
    (1, MONITORING, False, "Cycle Evaluation",
     "Analyze performance of previous cycle", 60, None),
    (2, CLEANING, False, "Equipment Maintenance",
     "Complete maintenance of equipment", 90, None),
    (3, MONITORING, False, "Continuous Training",
     "Review good poultry practices", 60, None),
    (4, MONITORING, False, "Next Planning",
     "Prepare next farming cycle", 60, None),
    (5, CLEANING, True, "Cleaning Disinfection",
     "Complete disinfection of facilities", 120, TipTopic.CLEANING.value),
    (6, CLEANING, False, "Sanitary Rest Start",
     "Let poultry house rest", 10, None),
    (7, FEEDING, False, "Supply Ordering",
     "Order feed and medicines", 30, TipTopic.NONE.value),
    (8, CLEANING, False, "Sanitary Rest End",
     "Finalize sanitary rest", 10, None),
    (9, MONITORING, False, "New Cycle Preparation",
     "Prepare arrival of new chicks", 60, None),
]

# (day, level, category, critical, title, description, minutes, topic)
LEVEL_TEMPLATES = [
    (1, ExperienceLevel.BEGINNER.value, MONITORING, False, "Brooding Walkthrough",
     "Walk through the brooding area with an experienced farmer or technician", 45, None),
    (3, ExperienceLevel.BEGINNER.value, MONITORING, True, "Night Temperature Check",
     "Check the temperature under the brooder during the night", 15, TipTopic.TEMPERATURE.value),
    (7, ExperienceLevel.ADVANCED.value, MONITORING, False, "Performance Benchmarking",
     "Compare feed conversion of the {flock_size} birds with the previous cycle", 30,
     TipTopic.NONE.value),
]


def build_catalog(cycle_type: CycleType) -> List[TaskTemplate]:
    end_day = CYCLE_NOMINAL_DAYS[cycle_type]
    rows: List[Tuple[Optional[str], TemplateRow]] = []

    rows += [(None, row) for row in BROODING_TEMPLATES]

    # Weekly weighings between the brooding weeks and the finishing week
    for day in range(21, end_day - 6, 7):
        rows.append((None, (day, MONITORING, True, "Weekly Weighing",
                            "Weigh sample of chickens to monitor growth", 30, None)))

    rows += [(None, (end_day - offset, *rest)) for offset, *rest in FINISHING_TEMPLATES]
    rows += [(None, (end_day + offset, *rest)) for offset, *rest in SANITARY_REST_TEMPLATES]
    rows += [(level, (day, *rest)) for day, level, *rest in LEVEL_TEMPLATES]

    return [
        TaskTemplate(
            day_number=day,
            category=category,
            is_critical=critical,
            duration_type=cycle_type.value,
            experience_level=level,
            topic=topic,
            title=title,
            description=description,
            estimated_duration_minutes=minutes,
        )
        for level, (day, category, critical, title, description, minutes, topic) in rows
    ]


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)


def seed_task_templates(db: Session) -> int:
    if db.query(TaskTemplate).count() > 0:
        return 0

    templates = [t for cycle_type in CycleType for t in build_catalog(cycle_type)]
    db.add_all(templates)
    db.commit()

    logger.info("Task template catalog seeded", templates_count=len(templates))
    return len(templates)


def main() -> None:
    create_tables()
    db = SessionLocal()
    try:
        count = seed_task_templates(db)
        print(f"✅ Seed completed: {count} task templates.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
