from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from codeclash.core.dependencies import get_judge_client
from codeclash.execution.judge_client import Judge0Client

router = APIRouter(tags=["Code Execution"])


class RunCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    input: Optional[str] = None


@router.post("/run-code")
async def run_code(
    data: RunCodeRequest,
    judge: Judge0Client = Depends(get_judge_client)
):
    """
    Run a program on the judge and return its decoded output
    """
    return await judge.run(data.code, data.language, data.input)
