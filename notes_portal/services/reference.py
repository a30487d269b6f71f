"""
Données de référence partagées par les deux écrans (sélection et upload).
"""
from typing import List

ENGINEERING_YEARS: List[str] = [
    "First Year",
    "Second Year",
    "Third Year",
    "Final Year",
]

BRANCHES: List[str] = [
    "Computer Engineering",
    "Information Technology",
    "Electronics & Telecommunication",
    "Mechanical Engineering",
    "Civil Engineering",
    "Electrical Engineering",
]

ACCEPTED_FILE_TYPES: List[str] = [".pdf", ".doc", ".docx", ".ppt", ".pptx"]


def is_known_year(value: str) -> bool:
    return value in ENGINEERING_YEARS


def is_known_branch(value: str) -> bool:
    return value in BRANCHES


def course_label(year: str, branch: str) -> str:
    return f"{year} - {branch}"
