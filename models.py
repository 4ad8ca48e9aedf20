from pydantic import BaseModel, Field, StrictInt, StrictStr
from typing import List, Optional

from config import MAX_QUESTION_AMOUNT, MIN_QUESTION_AMOUNT


class QuizQuestion(BaseModel):
    id: Optional[str] = None
    question: str = Field(min_length=10)
    options: List[str] = Field(min_length=4, max_length=4)
    correctAnswer: StrictInt = Field(ge=0, le=3)
    explanation: str = Field(min_length=10)


class QuizQuestions(BaseModel):
    title: str = Field(min_length=1)
    category: str = Field(min_length=1)
    questions: List[QuizQuestion]


class GenerateBody(BaseModel):
    url: StrictStr
    questionAmount: Optional[StrictInt] = Field(
        default=None, ge=MIN_QUESTION_AMOUNT, le=MAX_QUESTION_AMOUNT
    )


class QuizResponse(BaseModel):
    success: bool = True
    data: QuizQuestions
    questionCount: int


class ErrorResponse(BaseModel):
    error: str
    message: str
