"""
Demo entity set written on first load, when storage holds no collection.

Event dates fall inside the month of `today` so the calendar has something
to show.
"""
from datetime import date
from typing import List, Optional

from .schema import Task, Project, Event, Document, TaskStatus, Priority

SEED_CREATED_AT = "2024-10-01T00:00:00+00:00"


def seed_projects() -> List[Project]:
    return [
        Project(id="kitchen", name="Kitchen Renovation", status="active", progress=42,
                budget=25000, spent=11250, priority=Priority.HIGH),
        Project(id="basement", name="Basement Finishing", status="active", progress=65,
                budget=18000, spent=9000, priority=Priority.MEDIUM),
        Project(id="bathroom", name="Bathroom Update", status="planning", progress=20,
                budget=8000, spent=1200, priority=Priority.MEDIUM),
    ]


def _task(task_id, title, status, project, priority, labels, due_date=None) -> Task:
    return Task(
        id=task_id,
        title=title,
        status=status,
        project=project,
        priority=priority,
        labels=labels,
        due_date=due_date,
        created_at=SEED_CREATED_AT,
        updated_at=SEED_CREATED_AT,
    )


def seed_tasks() -> List[Task]:
    S, H, M, L = TaskStatus, Priority.HIGH, Priority.MEDIUM, Priority.LOW
    return [
        _task("t1", "Replace attic insulation", S.SOMEDAY, "basement", L, ["energy"]),
        _task("t2", "Add greywater system", S.SOMEDAY, "bathroom", L, ["plumbing"]),
        _task("t3", "Order backsplash tiles", S.PLANNING, "kitchen", M, ["tiles", "shopping"], "Next week"),
        _task("t4", "Get quote: egress window", S.PLANNING, "basement", M, ["contractor"]),
        _task("t5", "Schedule tile install", S.READY, "kitchen", H, ["tiling"], "Fri"),
        _task("t6", "Purchase vanity hardware", S.READY, "bathroom", M, ["hardware"]),
        _task("t7", "Paint cabinet doors", S.IN_PROGRESS, "kitchen", M, ["painting", "diy"], "50% complete"),
        _task("t8", "Install bathroom exhaust fan", S.IN_PROGRESS, "bathroom", M,
              ["electrical", "contractor"], "Electrician scheduled"),
        _task("t9", "Wait for electrical inspection", S.BLOCKED, "bathroom", H,
              ["inspection", "blocked"], "Delayed by inspector"),
        _task("t10", "Wait for custom cabinet delivery", S.BLOCKED, "kitchen", M,
              ["delivery", "supplier"], "Expected next Tuesday"),
        _task("t11", "Install kitchen countertops", S.DONE, "kitchen", H,
              ["countertops", "completed"], "Completed yesterday"),
        _task("t12", "Remove old bathroom fixtures", S.DONE, "bathroom", H,
              ["demolition", "completed"], "Completed last week"),
        _task("t13", "Paint basement ceiling", S.DONE, "basement", M,
              ["painting", "completed"], "Completed 2 weeks ago"),
    ]


def seed_documents() -> List[Document]:
    return [
        Document(id="doc-1", type="contract", project="kitchen",
                 title="Kitchen renovation contract", date="2024-10-15", size="2.4 MB"),
        Document(id="doc-2", type="photos", project="kitchen",
                 title="Kitchen before photos", date="2024-10-12", size="12 photos", photos=12),
        Document(id="doc-3", type="permit", project="basement",
                 title="Basement building permits", date="2024-11-01", size="1.1 MB"),
        Document(id="doc-4", type="receipt", project="kitchen",
                 title="Home Depot receipt", date="2024-11-18", size="$342.19"),
    ]


def seed_events(today: Optional[date] = None) -> List[Event]:
    today = today or date.today()

    def day(n: int) -> str:
        return today.replace(day=n).isoformat()

    return [
        Event(id="e1", title="Electrical inspection", date=day(7), project="bathroom",
              duration=60, attendees=["Inspector"], notes="AM window"),
        Event(id="e2", title="Tile delivery", date=day(12), project="kitchen",
              duration=0, notes="Curbside"),
        Event(id="e3", title="Contractor meeting", date=day(12), project="basement",
              duration=30, attendees=["GC"], notes="Scope review"),
        Event(id="e4", title="Vanity install", date=day(19), project="bathroom",
              duration=120, attendees=["Electrician"]),
    ]
