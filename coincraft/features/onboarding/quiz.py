"""
Onboarding quiz and character catalog.

Each answer votes for one character. The character with the most votes wins;
ties go to the character listed first in CHARACTERS.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from coincraft.core.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class Character:
    id: str
    name: str
    tagline: str
    icon: str
    modules: Tuple[str, ...]
    available: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tagline": self.tagline,
            "icon": self.icon,
            "modules": list(self.modules),
            "available": self.available,
        }


CHARACTERS: Dict[str, Character] = {
    c.id: c
    for c in (
        Character("observer", "The Observer", "Track, learn, adjust. Knowledge is power.", "👁️",
                  ("core", "statistics")),
        Character("planner", "The Planner", "Every peso has a job. You decide where it goes.", "📋",
                  ("core", "statistics", "envelope")),
        Character("saver", "The Saver", "Eyes on the prize. Every peso gets you closer.", "🎯",
                  ("core", "statistics", "goals")),
        Character("warrior", "The Warrior", "Fight your way to freedom. Every payment is a victory.", "⚔️",
                  ("core", "statistics", "debt"), available=False),
        Character("hustler", "The Hustler", "Multiple streams, one clear picture. Know your real profit.", "🚀",
                  ("core", "statistics", "freelancer"), available=False),
        Character("team", "The Team", "Your money, managed together.", "🤝",
                  ("core", "statistics", "shared"), available=False),
    )
}


@dataclass(frozen=True)
class QuizAnswer:
    text: str
    character: str


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    answers: Tuple[QuizAnswer, ...]


QUESTIONS: List[QuizQuestion] = [
    QuizQuestion(
        "You just got paid. What's your first move?",
        (
            QuizAnswer("Divide it into categories; I like knowing where every peso goes", "planner"),
            QuizAnswer("Check my balance and move on, I'll deal with it as I spend", "observer"),
            QuizAnswer("Put some aside for something I'm saving for", "saver"),
        ),
    ),
    QuizQuestion(
        "It's the middle of the month. You want to buy something fun. What do you think?",
        (
            QuizAnswer("Let me check if my Fun budget still has room", "planner"),
            QuizAnswer("I'll buy it and see where I stand at the end of the month", "observer"),
            QuizAnswer("Hmm, will this slow down my savings goal?", "saver"),
        ),
    ),
    QuizQuestion(
        "What would make you feel most in control of your money?",
        (
            QuizAnswer("Seeing exactly how much I can still spend in each area", "planner"),
            QuizAnswer("Understanding my spending patterns over time", "observer"),
            QuizAnswer("Watching my savings grow toward a target", "saver"),
        ),
    ),
    QuizQuestion(
        "What best describes your current money situation?",
        (
            QuizAnswer("I need structure to stop overspending", "planner"),
            QuizAnswer("I honestly don't know where my money goes", "observer"),
            QuizAnswer("I have something specific I want to save for", "saver"),
        ),
    ),
]


def tally(answers: Sequence[str]) -> Dict[str, int]:
    if len(answers) != len(QUESTIONS):
        raise ValidationError(f"Expected {len(QUESTIONS)} answers, got {len(answers)}")

    scores = {c.id: 0 for c in CHARACTERS.values() if c.available}
    for index, character_id in enumerate(answers):
        allowed = {a.character for a in QUESTIONS[index].answers}
        if character_id not in allowed:
            raise ValidationError(f"Answer {index + 1} must be one of: {', '.join(sorted(allowed))}")
        scores[character_id] += 1
    return scores


def recommend_character(answers: Sequence[str]) -> Character:
    scores = tally(answers)
    # max() keeps the first of equal scores, which is catalog order
    best = max(scores, key=lambda character_id: scores[character_id])
    return CHARACTERS[best]


def character_modules(character_id: str) -> Tuple[str, ...]:
    character = CHARACTERS.get(character_id)
    if character is None:
        raise NotFoundError(f"Unknown character: {character_id}")
    if not character.available:
        raise ValidationError(f"Character {character_id} is not available yet")
    return character.modules
