from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ProblemTestCase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input: str = ""
    output: str = ""
    is_sample: bool = Field(False, alias="isSample")


class ProblemCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    difficulty: Difficulty
    languages: List[str] = []
    starter_code: Dict[str, str] = Field(default_factory=dict, alias="starterCode")
    test_cases: List[ProblemTestCase] = Field(default_factory=list, alias="testCases")
    points: int = Field(0, ge=0)


class ProblemUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    languages: Optional[List[str]] = None
    starter_code: Optional[Dict[str, str]] = Field(None, alias="starterCode")
    test_cases: Optional[List[ProblemTestCase]] = Field(None, alias="testCases")
    points: Optional[int] = Field(None, ge=0)
