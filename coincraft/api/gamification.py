from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from coincraft.features.achievements.service import ACHIEVEMENTS, AchievementContext, evaluate_achievements
from coincraft.features.onboarding.quiz import QUESTIONS, character_modules, recommend_character, tally

router = APIRouter(tags=["gamification"])


class EvaluateAchievementsRequest(BaseModel):
    user_id: Optional[str] = None
    context: AchievementContext
    earned_ids: List[str] = Field(default_factory=list)


class QuizSubmission(BaseModel):
    answers: List[str] = Field(..., description="Character id chosen for each question, in order")


@router.get("/v1/achievements")
def list_achievements():
    return {"achievements": [a.to_dict() for a in ACHIEVEMENTS]}


@router.post("/v1/achievements/evaluate")
def post_evaluate_achievements(request: EvaluateAchievementsRequest):
    awarded = evaluate_achievements(request.context, request.earned_ids, user_id=request.user_id)
    return {"awarded": [a.to_dict() for a in awarded]}


@router.get("/v1/onboarding/quiz")
def get_quiz():
    return {
        "questions": [
            {
                "question": q.question,
                "answers": [{"text": a.text, "character": a.character} for a in q.answers],
            }
            for q in QUESTIONS
        ]
    }


@router.post("/v1/onboarding/quiz")
def submit_quiz(submission: QuizSubmission):
    scores = tally(submission.answers)
    character = recommend_character(submission.answers)
    return {
        "character": character.to_dict(),
        "scores": scores,
        "modules": list(character_modules(character.id)),
    }
