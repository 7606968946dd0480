# Seed data: demo users and complaints covering every category, priority and status

from datetime import timedelta
from typing import Dict, List

from .models import Complaint, ComplaintStatus, User
from .repository import ComplaintRepository, now_utc, timestamp_id
from .session import make_user

# ---------------------------------------------------------------------------
# Users (mock login identities)
# ---------------------------------------------------------------------------
DEMO_USERS = [
    {"key": "citizen1", "name": "Ayesha Khan", "email": "ayesha.khan@example.com"},
    {"key": "citizen2", "name": "Ravi Menon", "email": "ravi.menon@example.com"},
]

# ---------------------------------------------------------------------------
# Complaint records
# ---------------------------------------------------------------------------
DEMO_COMPLAINTS = [
    {"title": "Pothole", "description": "Large pothole on Main St near the bus stop.",
     "category": "Path Holes", "priority": "high", "location": "Main St",
     "status": "pending", "user_key": "citizen1"},

    {"title": "Garbage not collected for a week",
     "description": "Bins on Lake Road have overflowed; stray dogs are scattering the waste.",
     "category": "Garbage", "priority": "medium", "location": "Lake Road",
     "status": "in-progress", "user_key": "citizen1"},

    {"title": "Street light flickering",
     "description": "The light outside house 14 flickers all night and goes dark after midnight.",
     "category": "Electricity", "priority": "low", "location": "Green Park, Lane 3",
     "status": "resolved", "user_key": "citizen1"},

    {"title": "Burst water pipe",
     "description": "Water has been gushing from a broken pipeline since morning, flooding the road.",
     "category": "Water Pipeline", "priority": "urgent", "location": "Station Road",
     "status": "pending", "user_key": "citizen2"},

    {"title": "Rude counter staff at ward office",
     "description": "Staff refused to accept my application and asked me to come back next week.",
     "category": "Service Quality", "priority": "low", "location": "Ward Office 7",
     "status": "pending", "user_key": "citizen2"},

    {"title": "Blocked storm drain",
     "description": "The drain at the market corner is blocked with debris and smells badly.",
     "category": "Other", "priority": "medium", "location": "Old Market",
     "status": "pending", "user_key": "citizen2"},
]


def demo_users() -> Dict[str, User]:
    return {u["key"]: make_user(u["name"], u["email"]) for u in DEMO_USERS}


def import_complaints(repo: ComplaintRepository, users: Dict[str, User]) -> List[Complaint]:
    """Append the demo complaints, oldest first, then advance statuses."""
    now = now_utc()
    inserted: List[Complaint] = []
    for i, c in enumerate(DEMO_COMPLAINTS):
        created = now - timedelta(days=len(DEMO_COMPLAINTS) - i)
        complaint = repo.append({
            "id": timestamp_id(created),
            "title": c["title"], "description": c["description"],
            "category": c["category"], "priority": c["priority"],
            "location": c["location"],
            "userId": users[c["user_key"]].id,
            "createdAt": created,
        })
        target = ComplaintStatus(c["status"])
        if target != ComplaintStatus.PENDING:
            complaint = repo.set_status(complaint.id, target)
        inserted.append(complaint)
    return inserted
