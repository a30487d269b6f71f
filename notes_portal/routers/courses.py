from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/v1/courses", tags=["courses"])

COURSES_HREF = "/dashboard/courses"


class BackLink(BaseModel):
    href: str
    label: str


class CourseLayout(BaseModel):
    courseId: str
    back: BackLink


@router.get("/{course_id}/layout", response_model=CourseLayout)
def course_layout(course_id: str):
    # Habillage de la page détail : seulement le lien retour
    return CourseLayout(courseId=course_id, back=BackLink(href=COURSES_HREF, label="Back to Courses"))
