"""
Question generation service for the PDF Flashcard Generator
"""
import json
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from config import settings
from models.flashcard import QAPair, QuestionType
from services.llm_service import LLMService
from services.sequential_processor import SequentialProcessor
from services.text_chunker import TextChunker
from utils.exceptions import (
    FlashcardException, GenerationError, NoQuestionsGeneratedError, ValidationError
)
from utils.error_handlers import log_processing_step, log_performance_metric

logger = logging.getLogger(__name__)


PROMPT_TEMPLATES: Dict[QuestionType, str] = {
    QuestionType.ONE_MARK: (
        'Create 2-3 one-mark questions from this text. Format as JSON array with "question" and '
        '"answer" fields. Questions should be very short and direct. '
        'Example format: [{{"question": "What is X?", "answer": "X is Y"}}]:\n{chunk}'
    ),
    QuestionType.TWO_MARK: (
        'Create 2-3 two-mark questions from this text. Format as JSON array with "question" and '
        '"answer" fields. Answers should be 2-3 sentences. '
        'Example format: [{{"question": "What is X?", "answer": "X is Y"}}]:\n{chunk}'
    ),
    QuestionType.FIVE_MARK: (
        'Create 2-3 five-mark questions from this text. Format as JSON array with "question" and '
        '"answer" fields. Answers should be detailed with multiple points. '
        'Example format: [{{"question": "What is X?", "answer": "X is Y"}}]:\n{chunk}'
    ),
    QuestionType.TRUE_FALSE: (
        'Create 2-3 true/false statements from this text. Format as JSON array with "question" and '
        '"answer" fields. Include explanation in answer. '
        'Example format: [{{"question": "Statement: X is Y", "answer": "True/False: Explanation"}}]:\n{chunk}'
    ),
}

FALLBACK_PROMPT = (
    'Create 3 questions from this text. Format as JSON array with "question" and "answer" '
    'fields. Make questions clear and direct:\n{text}'
)

QUESTION_MARKERS = ("True/False:", "Statement:", "Question:", "Q:")
ANSWER_MARKERS = ("Answer:", "A:")

_JSON_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


class ParseOutcome(str, Enum):
    STRUCTURED = "structured"
    HEURISTIC = "heuristic"
    FAILED = "failed"


@dataclass
class ParseResult:
    """Outcome of reading one model response as question/answer pairs"""
    kind: ParseOutcome
    pairs: List[Dict[str, Any]] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class GenerationConfig:
    """Limits applied while generating questions"""
    max_chunks: int = 5
    min_field_length: int = 10  # both fields must be strictly longer than this
    fallback_prompt_chars: int = 1000

    @classmethod
    def from_settings(cls) -> "GenerationConfig":
        return cls(
            max_chunks=settings.max_question_chunks,
            min_field_length=settings.min_qa_field_length,
            fallback_prompt_chars=settings.fallback_prompt_chars
        )


def _strip_marker(line: str, markers) -> Optional[str]:
    for marker in markers:
        if line.startswith(marker):
            return line[len(marker):].strip()
    return None


def _scan_lines(response: str) -> List[Dict[str, str]]:
    """Line scanner for responses that are not JSON"""
    pairs: List[Dict[str, str]] = []
    question: Optional[str] = None
    answer: Optional[str] = None

    for raw_line in response.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        question_text = _strip_marker(line, QUESTION_MARKERS)
        if question_text is not None:
            if question and answer:
                pairs.append({"question": question, "answer": answer})
            question = question_text
            answer = None
            continue

        answer_text = _strip_marker(line, ANSWER_MARKERS)
        if answer_text is not None:
            answer = answer_text
        elif not question:
            question = line
        elif not answer:
            answer = line

    if question and answer:
        pairs.append({"question": question, "answer": answer})

    return pairs


def parse_response(response: str) -> ParseResult:
    """
    Interpret a model response as question/answer pairs.

    A JSON array (bare or inside a markdown fence) is taken as-is. JSON of any
    other shape is a failure. Anything that is not JSON goes through the line
    scanner.
    """
    if not response or not response.strip():
        return ParseResult(ParseOutcome.FAILED, reason="empty response")

    candidate = response.strip()
    fenced = _JSON_FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        parsed = json.loads(candidate)
    except ValueError:
        pairs = _scan_lines(response)
        if pairs:
            return ParseResult(ParseOutcome.HEURISTIC, pairs=pairs)
        return ParseResult(ParseOutcome.FAILED, reason="no question/answer lines found")

    if not isinstance(parsed, list):
        return ParseResult(ParseOutcome.FAILED, reason=f"expected a JSON array, got {type(parsed).__name__}")

    return ParseResult(ParseOutcome.STRUCTURED, pairs=[item for item in parsed if isinstance(item, dict)])


def is_meaningful_pair(item: Any, min_length: int = 10) -> bool:
    if not isinstance(item, dict):
        return False
    question = item.get("question")
    answer = item.get("answer")
    if not isinstance(question, str) or not isinstance(answer, str):
        return False
    return len(question.strip()) > min_length and len(answer.strip()) > min_length


class QuestionService:
    """Turns document text into flashcards of a requested type"""

    def __init__(
        self,
        llm_service: LLMService,
        text_chunker: Optional[TextChunker] = None,
        processor: Optional[SequentialProcessor] = None,
        config: Optional[GenerationConfig] = None
    ):
        self.llm_service = llm_service
        self.text_chunker = text_chunker or TextChunker()
        self.processor = processor or SequentialProcessor()
        self.config = config or GenerationConfig()

    def build_prompt(self, question_type: QuestionType, chunk: str) -> str:
        return PROMPT_TEMPLATES[question_type].format(chunk=chunk)

    def _valid_pairs(self, pairs: List[Dict[str, Any]], min_length: Optional[int] = None) -> List[QAPair]:
        if min_length is None:
            min_length = self.config.min_field_length
        return [
            QAPair(question=item["question"].strip(), answer=item["answer"].strip())
            for item in pairs
            if is_meaningful_pair(item, min_length)
        ]

    async def generate_questions(
        self,
        text: str,
        question_type: Any,
        num_questions: int = 5
    ) -> List[QAPair]:
        """
        Generate up to ``num_questions`` flashcards from the text.

        Args:
            text: Full document text
            question_type: One of the QuestionType values (case-insensitive)
            num_questions: Maximum number of pairs to return

        Returns:
            Between 1 and ``num_questions`` pairs, in generation order

        Raises:
            InvalidQuestionTypeError: If the question type is unknown
            NoQuestionsGeneratedError: If neither the chunk pass nor the fallback produced a pair
        """
        start_time = time.time()
        qtype = QuestionType.parse(question_type)

        if not isinstance(num_questions, int) or num_questions < 1:
            raise ValidationError(
                message="Number of questions must be at least 1",
                field_name="numQuestions",
                field_value=num_questions,
                validation_rule="min_value"
            )

        try:
            chunks = self.text_chunker.chunk_text(text)[:self.config.max_chunks]
            log_processing_step("question_generation", {
                "question_type": qtype.value,
                "chunks": len(chunks)
            })

            async def process_chunk(chunk: str) -> List[QAPair]:
                response = await self.llm_service.complete(self.build_prompt(qtype, chunk))
                result = parse_response(response)
                if result.kind == ParseOutcome.FAILED:
                    logger.warning(f"Could not parse questions from response: {result.reason}")
                    return []
                if result.kind == ParseOutcome.HEURISTIC:
                    logger.info("JSON parsing failed, used text parsing")
                return self._valid_pairs(result.pairs)

            questions = await self.processor.process(chunks, process_chunk)

            if not questions:
                logger.info("No questions generated, trying alternative prompt")
                questions = await self._fallback(text)

            if not questions:
                raise NoQuestionsGeneratedError(chunks_processed=len(chunks))

        except FlashcardException:
            raise
        except Exception as e:
            logger.error(f"Question Generation Error: {e}")
            raise GenerationError(
                message=f"Question Generation Error: {e}",
                processing_stage="question_generation",
                original_exception=e
            ) from e

        log_performance_metric(
            "generate_questions",
            int((time.time() - start_time) * 1000),
            {"question_type": qtype.value, "generated": len(questions), "requested": num_questions}
        )
        return questions[:num_questions]

    async def _fallback(self, text: str) -> List[QAPair]:
        prompt = FALLBACK_PROMPT.format(text=text[:self.config.fallback_prompt_chars])
        try:
            response = await self.llm_service.complete(prompt)
        except Exception as e:
            logger.error(f"Alternative prompt failed: {e}")
            return []

        result = parse_response(response)
        if result.kind != ParseOutcome.STRUCTURED:
            logger.warning("Alternative prompt did not return a JSON array")
            return []
        # only completeness is checked here, short answers are kept
        return self._valid_pairs(result.pairs, min_length=0)
