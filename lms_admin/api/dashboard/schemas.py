from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    total: int = 0
    active: int = 0
    admins: int = 0


class LearningSummary(BaseModel):
    total_records: int = 0
    completed: int = 0
    in_progress: int = 0
    pending_review: int = 0
    avg_posttest: Optional[float] = None
    avg_pretest: Optional[float] = None


class CourseSummary(BaseModel):
    total: int = 0
    active: int = 0


class TopCourse(BaseModel):
    course_id: int
    course_name: Optional[str] = None
    total_enrollments: int = 0
    completed_count: int = 0
    avg_posttest: Optional[float] = None


class MonthlyPoint(BaseModel):
    month: int
    enrollments: int = 0
    completions: int = 0


class RecentCompletion(BaseModel):
    id: int
    user_id: Optional[int] = None
    course_id: Optional[int] = None
    score: Optional[float] = None
    total_score: Optional[float] = None
    posttest: Optional[float] = None
    updated_at: Optional[datetime] = None
    employee_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name_thai: Optional[str] = None
    company: Optional[str] = None
    course_name: Optional[str] = None


class DashboardSnapshot(BaseModel):
    """Everything the dashboard page needs for one (year, company) pair."""

    users: UserSummary
    learning: LearningSummary
    courses: CourseSummary
    top_courses: List[TopCourse] = Field(default_factory=list, alias="topCourses")
    monthly_data: List[MonthlyPoint] = Field(default_factory=list, alias="monthlyData")
    recent_completions: List[RecentCompletion] = Field(default_factory=list, alias="recentCompletions")
    available_years: List[int] = Field(default_factory=list, alias="availableYears")
    selected_year: int = Field(..., alias="selectedYear")
    selected_company: str = Field(..., alias="selectedCompany")

    class Config:
        populate_by_name = True
