"""
Exam API endpoints
Question generation, results, TRI score and consistency of an attempt
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

import config
from api.schemas import (
    ConsistencyResponse,
    ExamAttemptRequest,
    ExamConfigRequest,
    QuestionResponse,
    QuestionSetResponse,
    ScoreResponse,
    StatisticsResponse,
)
from api.shared import (
    get_ability_scorer,
    get_consistency_analyzer,
    get_question_generator,
    get_results_analyzer,
)
from models.exam_config import ExamConfiguration
from services.ability_scorer_service import AbilityScorerService
from services.consistency_analyzer_service import ConsistencyAnalyzerService
from services.question_generator_service import QuestionGeneratorService
from services.results_analyzer_service import ResultsAnalyzerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/exam", tags=["Exam"])


def _exam_configuration(request: ExamConfigRequest) -> ExamConfiguration:
    return ExamConfiguration(
        year=request.year,
        exam_type=request.exam_type,
        color=request.color,
        language=request.language,
    )


@router.post("/questions", response_model=QuestionSetResponse)
async def generate_questions(
    request: ExamConfigRequest,
    question_generator: QuestionGeneratorService = Depends(get_question_generator),
):
    """
    Build the questions of an attempt in booklet order

    Positions without a canonical mapping or without an answer-key entry
    are returned as nullified.
    """
    exam_config = _exam_configuration(request)
    questions = question_generator.generate(exam_config)

    return QuestionSetResponse(
        questions=[QuestionResponse(**asdict(q)) for q in questions],
        total_questions=len(questions),
        nullified_count=sum(1 for q in questions if q.nullified),
        exam_type=question_generator.effective_exam_type(exam_config),
    )


@router.post("/results", response_model=StatisticsResponse)
async def calculate_results(
    request: ExamAttemptRequest,
    question_generator: QuestionGeneratorService = Depends(get_question_generator),
    results_analyzer: ResultsAnalyzerService = Depends(get_results_analyzer),
):
    """
    Statistics, skill report and answer patterns of an attempt
    """
    questions = question_generator.generate(_exam_configuration(request.config))
    stats = results_analyzer.calculate(questions, request.responses)
    return StatisticsResponse.model_validate(asdict(stats))


@router.post("/score", response_model=ScoreResponse)
async def calculate_score(
    request: ExamAttemptRequest,
    question_generator: QuestionGeneratorService = Depends(get_question_generator),
    ability_scorer: AbilityScorerService = Depends(get_ability_scorer),
):
    """
    TRI score of a single-subject attempt

    Always answers 200: a missing model or an unsupported exam type is
    reported with success=false and a readable error.
    """
    exam_config = _exam_configuration(request.config)
    questions = question_generator.generate(exam_config)
    result = await ability_scorer.calculate_score(exam_config, questions, request.responses)
    return ScoreResponse(**asdict(result))


@router.post("/consistency", response_model=ConsistencyResponse)
async def analyze_consistency(
    request: ExamAttemptRequest,
    question_generator: QuestionGeneratorService = Depends(get_question_generator),
    ability_scorer: AbilityScorerService = Depends(get_ability_scorer),
    consistency_analyzer: ConsistencyAnalyzerService = Depends(get_consistency_analyzer),
):
    """
    Compare each answer with the 3PL probability at the attempt's score

    Returns the findings from the most to the least surprising.
    """
    exam_config = _exam_configuration(request.config)
    questions = question_generator.generate(exam_config)
    result = await ability_scorer.calculate_score(exam_config, questions, request.responses)

    top_n = request.top_n if request.top_n is not None else config.CONSISTENCY_TOP_N
    try:
        report = consistency_analyzer.analyze(result, questions, request.responses, top_n)
    except ValueError as e:
        logger.info("Consistency skipped for %s/%s: %s", exam_config.year, exam_config.exam_type, result.error)
        raise HTTPException(
            status_code=422,
            detail=f"{e}: {result.error}" if result.error else str(e),
        )

    return ConsistencyResponse(
        score=ScoreResponse(**asdict(result)),
        theta=report.theta,
        total_questions=report.total_questions,
        questions_with_irt=report.questions_with_irt,
        findings=[asdict(f) for f in report.findings],
    )
