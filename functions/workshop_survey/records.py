"""
In-memory survey records and the option catalogs the form offers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

BATCHES = ("10th", "11th", "12th", "13th", "14th")

DEPARTMENTS = ("TEX", "IPE", "CSE", "EEE", "FDAE")

EXPERIENCE_LEVELS = {
    "beginner": "Beginner - New to robotics",
    "intermediate": "Intermediate - Some experience",
    "advanced": "Advanced - Experienced in robotics",
}

WORKSHOP_TOPICS = {
    "arduino-basics": "Arduino Programming Basics",
    "sensor-integration": "Sensor Integration & IoT",
    "robotics-design": "Robot Design & Mechanics",
    "ai-robotics": "AI & Machine Learning in Robotics",
    "autonomous-systems": "Autonomous Navigation Systems",
    "computer-vision": "Computer Vision & Image Processing",
    "robot-control": "Advanced Robot Control Systems",
    "drone-technology": "Drone Technology & Applications",
}

PROGRAMMING_LANGUAGES = (
    "C/C++",
    "Python",
    "Arduino IDE",
    "JavaScript",
    "Java",
    "MATLAB",
    "ROS (Robot Operating System)",
    "Assembly",
    "Scratch/Block Programming",
    "No programming experience",
)

AVAILABILITY_OPTIONS = tuple(
    f"{day} June 2025 (9 AM - 4 PM)" for day in range(20, 31)
)


@dataclass
class SurveyRecord:
    """One completed (or draft) survey response."""

    name: str = ""
    email: str = ""
    phone: str = ""
    student_id: str = ""
    batch: str = ""
    department: str = ""
    experience_level: str = ""
    workshop_topics: list[str] = field(default_factory=list)
    programming_languages: list[str] = field(default_factory=list)
    availability: str = ""
    expectations: str = ""
    additional_comments: str = ""

    def to_dict(self) -> dict:
        """Form-facing (camelCase) representation."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "studentId": self.student_id,
            "batch": self.batch,
            "department": self.department,
            "experienceLevel": self.experience_level,
            "workshopTopics": list(self.workshop_topics),
            "programmingLanguages": list(self.programming_languages),
            "availability": self.availability,
            "expectations": self.expectations,
            "additionalComments": self.additional_comments,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SurveyRecord":
        """Build a record from a camelCase draft; missing keys become empty."""
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            student_id=data.get("studentId") or "",
            batch=data.get("batch") or "",
            department=data.get("department") or "",
            experience_level=data.get("experienceLevel") or "",
            workshop_topics=list(data.get("workshopTopics") or []),
            programming_languages=list(data.get("programmingLanguages") or []),
            availability=data.get("availability") or "",
            expectations=data.get("expectations") or "",
            additional_comments=data.get("additionalComments") or "",
        )

    def copy(self) -> "SurveyRecord":
        return replace(
            self,
            workshop_topics=list(self.workshop_topics),
            programming_languages=list(self.programming_languages),
        )


@dataclass
class StoredSubmission:
    """A survey record after a backend accepted it."""

    id: str
    record: SurveyRecord
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        payload = self.record.to_dict()
        payload["id"] = self.id
        payload["createdAt"] = (
            self.created_at.isoformat() if self.created_at else None
        )
        return payload
