from typing import Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.permissions import UserContext, require_admin
from codeclash.problems import problem_service as service
from codeclash.problems.problem_schemas import Difficulty, ProblemCreate, ProblemUpdate

router = APIRouter(prefix="/problems", tags=["Problems"])

# ==================== CATALOG ====================

@router.get("")
async def list_problems(
    difficulty: Optional[Difficulty] = None,
    category: Optional[str] = None,
    title: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_problems(
        db, difficulty.value if difficulty else None, category, title
    )

@router.get("/{problem_id}")
async def get_problem(problem_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return await service.get_problem(db, problem_id)

# ==================== ADMIN ====================

@router.post("", status_code=201)
async def create_problem(
    data: ProblemCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    problem = await service.create_problem(db, data.model_dump(), admin.user_id)
    return {"message": "Problem created", "problemId": problem["problem_id"], "problem": problem}

@router.patch("/{problem_id}")
async def update_problem(
    problem_id: str,
    data: ProblemUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.update_problem(db, problem_id, data.model_dump(exclude_none=True))

@router.delete("/{problem_id}")
async def delete_problem(
    problem_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    await service.delete_problem(db, problem_id)
    await log_audit(db, admin, "delete_problem", "problem", problem_id)
    return {"message": "Problem deleted"}
