"""
Teacher/opportunity scoring.

Scores one teacher against one school or job posting and explains the result.
Pure functions only: loading candidates and persisting results lives in
placement.services.matching.

Weights (sum to 1.0):
- Location: 35%
- Subject: 25%
- Age group: 20%
- Experience: 15%
- Chinese language: 5%

Each component is scored 0-100 on its own; the total is the weighted sum
rounded half-up to a whole percent. When either side lacks the data a
component needs, that component scores NEUTRAL_SCORE instead of failing.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from placement.models.job import Job
from placement.models.school import School
from placement.models.teacher import Teacher

T = TypeVar("T")

WEIGHTS: Dict[str, float] = {
    "location": 0.35,
    "subject": 0.25,
    "age_group": 0.20,
    "experience": 0.15,
    "chinese": 0.05,
}

NEUTRAL_SCORE = 50

# Location sub-scores
CITY_MATCH_SCORE = 100
ANYWHERE_SCORE = 80
PROVINCE_MATCH_SCORE = 75

# Subject / age group: any overlap earns the floor, full coverage earns 100
OVERLAP_FLOOR = 60

# Chinese ability when the opportunity requires it
CHINESE_LEVEL_SCORES: Dict[str, int] = {
    "native": 100,
    "fluent": 100,
    "advanced": 100,
    "conversational": 70,
    "intermediate": 70,
    "basic": 40,
    "beginner": 40,
    "none": 0,
}


class Aliases:
    """Canonical spellings for free-text profile values."""

    LOCATIONS = {
        "beijing": ("beijing", "peking", "北京"),
        "shanghai": ("shanghai", "上海"),
        "guangzhou": ("guangzhou", "canton", "广州"),
        "shenzhen": ("shenzhen", "深圳"),
        "hangzhou": ("hangzhou", "杭州"),
        "chengdu": ("chengdu", "成都"),
        "suzhou": ("suzhou", "苏州"),
        "nanjing": ("nanjing", "南京"),
        "wuhan": ("wuhan", "武汉"),
        "xian": ("xian", "xi'an", "西安"),
        "guangdong": ("guangdong", "广东"),
        "jiangsu": ("jiangsu", "江苏"),
        "zhejiang": ("zhejiang", "浙江"),
        "sichuan": ("sichuan", "四川"),
    }

    # Preferences meaning "no location preference"
    ANYWHERE = {"anywhere", "any", "any city", "flexible", "open", "no preference", "all of china", "china"}

    SUBJECTS = {
        "english": (
            "english", "esl", "efl", "tefl", "tesol", "oral english",
            "english as a second language", "phonics", "ielts", "toefl",
        ),
        "mathematics": ("math", "maths", "mathematics"),
        "science": ("science", "general science"),
        "physical education": ("pe", "p.e.", "physical education", "sports"),
        "art": ("art", "arts", "visual arts"),
        "computer science": ("computer science", "ict", "computing", "it", "coding", "programming"),
        "chinese": ("chinese", "mandarin"),
    }

    AGE_GROUPS = {
        "kindergarten": ("kindergarten", "kinder", "preschool", "pre-school", "nursery", "early years"),
        "primary": ("primary", "elementary", "primary school", "elementary school"),
        "middle school": ("middle school", "junior high", "middle"),
        "high school": ("high school", "senior high", "secondary"),
        "adults": ("adult", "adults", "university", "college", "business english"),
    }


def _reverse(table: Dict[str, Tuple[str, ...]]) -> Dict[str, str]:
    return {alias: canonical for canonical, aliases in table.items() for alias in aliases}


_LOCATION_LOOKUP = _reverse(Aliases.LOCATIONS)
_SUBJECT_LOOKUP = _reverse(Aliases.SUBJECTS)
_AGE_GROUP_LOOKUP = _reverse(Aliases.AGE_GROUPS)


def canonical(value: Optional[str], lookup: Dict[str, str]) -> str:
    """Lower-case, trim and map a value to its canonical alias."""
    text = (value or "").strip().lower()
    return lookup.get(text, text)


# ============================================================
# INPUT VIEWS
# ============================================================

@dataclass(frozen=True)
class TeacherProfileView:
    """The teacher attributes scoring looks at."""
    locations: Tuple[str, ...] = ()
    subjects: Tuple[str, ...] = ()
    age_groups: Tuple[str, ...] = ()
    years_experience: Optional[int] = None
    chinese_level: Optional[str] = None


@dataclass(frozen=True)
class OpportunityProfile:
    """
    Requirement view shared by both opportunity kinds.

    kind is "school" for standing school vacancies and "job" for one-off
    postings; scoring treats them identically.
    """
    kind: str
    id: int
    city: Optional[str] = None
    province: Optional[str] = None
    subjects: Tuple[str, ...] = ()
    age_groups: Tuple[str, ...] = ()
    experience_required: Optional[int] = None
    chinese_required: bool = False
    posted_at: Optional[datetime] = None


def teacher_view(teacher: Teacher) -> TeacherProfileView:
    return TeacherProfileView(
        locations=tuple(teacher.preferred_location or ()),
        subjects=tuple(teacher.subject_specialty or ()),
        age_groups=tuple(teacher.preferred_age_group or ()),
        years_experience=teacher.years_experience,
        chinese_level=teacher.chinese_level,
    )


def opportunity_from_school(school: School) -> OpportunityProfile:
    return OpportunityProfile(
        kind="school",
        id=school.id,
        city=school.city,
        province=school.province,
        subjects=tuple(school.subjects or ()),
        age_groups=tuple(school.age_groups or ()),
        experience_required=school.experience_required,
        chinese_required=bool(school.chinese_required),
        posted_at=school.created_at,
    )


def opportunity_from_job(job: Job) -> OpportunityProfile:
    return OpportunityProfile(
        kind="job",
        id=job.id,
        city=job.city,
        province=job.province,
        subjects=tuple(job.subjects or ()),
        age_groups=tuple(job.age_groups or ()),
        experience_required=job.experience_required,
        chinese_required=bool(job.chinese_required),
        posted_at=job.created_at,
    )


# ============================================================
# RESULTS
# ============================================================

@dataclass(frozen=True)
class ComponentScore:
    name: str
    score: float
    weight: float
    reason: Optional[str] = None

    @property
    def weighted(self) -> float:
        return self.score * self.weight


@dataclass(frozen=True)
class MatchScore:
    total: int
    components: Tuple[ComponentScore, ...] = field(default_factory=tuple)

    @property
    def reasons(self) -> List[str]:
        """Human-readable reasons in component order (location first)."""
        return [c.reason for c in self.components if c.reason]

    def breakdown(self) -> List[dict]:
        return [
            {"name": c.name, "score": round(c.score, 2), "weight": c.weight}
            for c in self.components
        ]


# ============================================================
# COMPONENT SCORERS
# ============================================================

def score_location(
    preferred_locations: Sequence[str],
    city: Optional[str],
    province: Optional[str],
) -> ComponentScore:
    """
    Compare a teacher's preferred locations with the opportunity's city/province.

    - City in preferences: 100
    - Teacher open to anywhere: 80
    - Province in preferences: 75
    - No overlap: 0
    - Either side missing: neutral
    """
    weight = WEIGHTS["location"]
    if not preferred_locations or not (city or province):
        return ComponentScore("location", NEUTRAL_SCORE, weight)

    preferences = {canonical(loc, _LOCATION_LOOKUP) for loc in preferred_locations}

    if city and canonical(city, _LOCATION_LOOKUP) in preferences:
        return ComponentScore("location", CITY_MATCH_SCORE, weight, f"Location match: {city}")

    if preferences & Aliases.ANYWHERE:
        return ComponentScore("location", ANYWHERE_SCORE, weight, "Location: open to any city")

    if province and canonical(province, _LOCATION_LOOKUP) in preferences:
        return ComponentScore("location", PROVINCE_MATCH_SCORE, weight, f"Province match: {province}")

    return ComponentScore("location", 0, weight)


def _score_overlap(
    name: str,
    label: str,
    teacher_values: Sequence[str],
    required_values: Sequence[str],
    lookup: Dict[str, str],
) -> ComponentScore:
    weight = WEIGHTS[name]
    if not teacher_values or not required_values:
        return ComponentScore(name, NEUTRAL_SCORE, weight)

    offered = {canonical(v, lookup) for v in teacher_values}

    # Keep the opportunity's own spelling for the reason text
    required: Dict[str, str] = {}
    for value in required_values:
        required.setdefault(canonical(value, lookup), value.strip())

    matched = [display for key, display in required.items() if key in offered]
    if not matched:
        return ComponentScore(name, 0, weight)

    covered = len(matched) / len(required)
    score = OVERLAP_FLOOR + (100 - OVERLAP_FLOOR) * covered
    return ComponentScore(name, score, weight, f"{label} match: {', '.join(matched)}")


def score_subject(teacher_subjects: Sequence[str], required_subjects: Sequence[str]) -> ComponentScore:
    return _score_overlap("subject", "Subject", teacher_subjects, required_subjects, _SUBJECT_LOOKUP)


def score_age_group(teacher_age_groups: Sequence[str], required_age_groups: Sequence[str]) -> ComponentScore:
    return _score_overlap("age_group", "Age group", teacher_age_groups, required_age_groups, _AGE_GROUP_LOOKUP)


def score_experience(years: Optional[int], required: Optional[int]) -> ComponentScore:
    """Full marks at or above the requirement, proportional below it."""
    weight = WEIGHTS["experience"]
    if years is None or required is None:
        return ComponentScore("experience", NEUTRAL_SCORE, weight)

    years = max(0, years)
    if required <= 0 or years >= required:
        reason = f"Experience: {years} years"
        if required > 0:
            reason += f" ({required}+ required)"
        return ComponentScore("experience", 100, weight, reason)

    return ComponentScore("experience", 100 * years / required, weight)


def score_chinese(level: Optional[str], required: bool) -> ComponentScore:
    weight = WEIGHTS["chinese"]
    level_key = (level or "").strip().lower()

    if not required:
        reason = None
        if CHINESE_LEVEL_SCORES.get(level_key, 0) >= 70:
            reason = f"Chinese language: {level_key}"
        return ComponentScore("chinese", 100, weight, reason)

    if level_key not in CHINESE_LEVEL_SCORES:
        return ComponentScore("chinese", NEUTRAL_SCORE, weight)

    score = CHINESE_LEVEL_SCORES[level_key]
    reason = f"Chinese language: {level_key} (required)" if score >= 70 else None
    return ComponentScore("chinese", score, weight, reason)


# ============================================================
# TOTAL & RANKING
# ============================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_match(teacher: TeacherProfileView, opportunity: OpportunityProfile) -> MatchScore:
    """
    Score a teacher against an opportunity.

    Deterministic: identical inputs always produce the identical MatchScore.
    """
    components = (
        score_location(teacher.locations, opportunity.city, opportunity.province),
        score_subject(teacher.subjects, opportunity.subjects),
        score_age_group(teacher.age_groups, opportunity.age_groups),
        score_experience(teacher.years_experience, opportunity.experience_required),
        score_chinese(teacher.chinese_level, opportunity.chinese_required),
    )
    raw = sum(c.weighted for c in components)
    total = max(0, min(100, _round_half_up(raw)))
    return MatchScore(total=total, components=components)


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value else 0.0


def rank_matches(
    scored: Iterable[Tuple[OpportunityProfile, MatchScore]],
) -> List[Tuple[OpportunityProfile, MatchScore]]:
    """Sort by score (highest first), then by recency. Stable otherwise."""
    return sorted(
        scored,
        key=lambda pair: (-pair[1].total, -_timestamp(pair[0].posted_at)),
    )


def rank_candidates(scored: Iterable[Tuple[T, MatchScore]]) -> List[Tuple[T, MatchScore]]:
    """Sort teacher candidates by score (highest first), keeping input order on ties."""
    return sorted(scored, key=lambda pair: -pair[1].total)
