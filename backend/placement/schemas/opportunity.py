"""
Opportunity schemas.

A teacher can match against two kinds of opportunity: a standing School
vacancy or a one-off Job posting. They share a common shape (location,
salary_display, requirements) and are told apart by the `type` discriminator.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field

from placement.models.job import Job
from placement.models.school import School


class OpportunityRequirements(BaseModel):
    subjects: list[str] = Field(default_factory=list)
    age_groups: list[str] = Field(default_factory=list)
    experience_required: Optional[int] = None
    chinese_required: bool = False


def _location(city: Optional[str], province: Optional[str]) -> Optional[str]:
    parts = [p for p in (city, province) if p]
    return ", ".join(parts) if parts else None


class SchoolOpportunity(BaseModel):
    type: Literal["school"] = "school"
    id: int
    name: str
    city: Optional[str] = None
    province: Optional[str] = None
    location: Optional[str] = None
    school_type: Optional[str] = None
    age_groups: list[str] = Field(default_factory=list)
    salary_range: Optional[str] = None
    salary_display: Optional[str] = None
    requirements: OpportunityRequirements
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @classmethod
    def from_school(cls, school: School) -> "SchoolOpportunity":
        return cls(
            id=school.id,
            name=school.name,
            city=school.city,
            province=school.province,
            location=_location(school.city, school.province),
            school_type=school.school_type,
            age_groups=list(school.age_groups or []),
            salary_range=school.salary_range,
            salary_display=school.salary_range,
            requirements=OpportunityRequirements(
                subjects=list(school.subjects or []),
                age_groups=list(school.age_groups or []),
                experience_required=school.experience_required,
                chinese_required=bool(school.chinese_required),
            ),
            contact_name=school.contact_name,
            contact_email=school.contact_email,
            contact_phone=school.contact_phone,
        )


class JobOpportunity(BaseModel):
    type: Literal["job"] = "job"
    id: int
    title: str
    company: Optional[str] = None
    source: str
    role_type: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    location: Optional[str] = None
    salary_display: Optional[str] = None
    external_url: Optional[str] = None
    apply_by: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    requirements: OpportunityRequirements

    @classmethod
    def from_job(cls, job: Job) -> "JobOpportunity":
        return cls(
            id=job.id,
            title=job.title,
            company=job.company,
            source=job.source,
            role_type=job.role_type,
            city=job.city,
            province=job.province,
            location=_location(job.city, job.province),
            salary_display=job.salary_display,
            external_url=job.external_url,
            apply_by=job.apply_by,
            expiry_date=job.expiry_date,
            requirements=OpportunityRequirements(
                subjects=list(job.subjects or []),
                age_groups=list(job.age_groups or []),
                experience_required=job.experience_required,
                chinese_required=bool(job.chinese_required),
            ),
        )


Opportunity = Annotated[Union[SchoolOpportunity, JobOpportunity], Field(discriminator="type")]
