"""Question bank: authoring operations over weighted questions.

Questions are stored flat, one JSON document per question, under
`question/{id}`. Every write carries the full answer set, so the weight-sum
invariant is checked once per write and a reader can never observe a
partially replaced answer set.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

from assessment_service.logic import events
from assessment_service.logic.errors import ConflictError, ImmutableFieldError, NotFound, ValidationError
from assessment_service.logic.keys import (
    ACTIVE_VERSION_KEY,
    QUESTION_PREFIX,
    QUESTION_SEQUENCE_KEY,
    question_key,
)
from assessment_service.logic.kv_store import ABSENT, KeyValueStore, Record
from assessment_service.logic.version_index import normalize_version_id
from assessment_service.logic.weights import validate_answer_set, validate_question_text
from assessment_service.models.question import AnswerOption, AnswerOptionIn, Question

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks an update field the caller did not supply (None is a real value for category)
UNSET: Any = _Unset()

# Sequence allocation is a compare-and-set loop; give up after this many lost races
_SEQ_MAX_ATTEMPTS = 25


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_category(category: Any) -> Optional[str]:
    if category is None:
        return None
    if not isinstance(category, str):
        raise ValidationError("category must be a string", path="$.category")
    return category.strip() or None


def _require_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean", path=f"$.{field}")
    return value


def _with_ids(answers: List[AnswerOptionIn]) -> List[AnswerOption]:
    return [AnswerOption(id=str(uuid.uuid4()), text=a.text, weight=a.weight) for a in answers]


class QuestionBank:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def active_version_id(self) -> Optional[str]:
        record = self.store.get(ACTIVE_VERSION_KEY)
        if record is None:
            return None
        value = record.value.get("version_id")
        return str(value) if value is not None else None

    def _to_question(self, record: Record, active: Optional[str]) -> Question:
        question = Question.model_validate(record.value)
        question.revision = record.revision
        question.is_authoritative = active is not None and question.version == active
        return question

    def get_question(self, question_id: str) -> Question:
        record = self.store.get(question_key(question_id))
        if record is None:
            raise NotFound(f"question {question_id} not found", question_id=question_id)
        return self._to_question(record, self.active_version_id())

    def list_questions(
        self,
        version: Any = None,
        category: Optional[str] = None,
        in_assessment: Optional[bool] = None,
    ) -> List[Question]:
        """Return questions matching every supplied filter, in creation order."""
        version_id = normalize_version_id(version) if version is not None else None
        active = self.active_version_id()
        questions = [self._to_question(r, active) for r in self.store.list_prefix(QUESTION_PREFIX)]
        if version_id is not None:
            questions = [q for q in questions if q.version == version_id]
        if category is not None:
            questions = [q for q in questions if q.category == category]
        if in_assessment is not None:
            questions = [q for q in questions if q.in_assessment is in_assessment]
        return sorted(questions, key=lambda q: (q.seq, q.id))

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def _next_seq(self) -> int:
        for _ in range(_SEQ_MAX_ATTEMPTS):
            record = self.store.get(QUESTION_SEQUENCE_KEY)
            current = int(record.value.get("next", 1)) if record else 1
            try:
                self.store.put(
                    QUESTION_SEQUENCE_KEY,
                    {"next": current + 1},
                    expected_revision=record.revision if record else ABSENT,
                )
                return current
            except ConflictError:
                logger.info("question_bank.seq.retry current=%s", current)
        raise ConflictError("could not allocate a question sequence number", code="REVISION_CONFLICT")

    def create_question(
        self,
        version: Any,
        text: Any,
        category: Any = None,
        answers: Iterable[Any] = (),
        in_assessment: Any = True,
    ) -> Question:
        """Validate and persist a new question under `version`.

        `answers` is a sequence of (text, weight) pairs, mappings with those
        keys, or AnswerOptionIn models. The weights must total exactly 100.
        """
        version_id = normalize_version_id(version)
        clean_text = validate_question_text(text)
        clean_answers = validate_answer_set(answers)
        clean_category = _normalize_category(category)
        flag = _require_bool(in_assessment, "in_assessment")

        now = self.clock()
        question = Question(
            id=str(uuid.uuid4()),
            version=version_id,
            text=clean_text,
            category=clean_category,
            in_assessment=flag,
            answers=_with_ids(clean_answers),
            created_at=now,
            updated_at=now,
            seq=self._next_seq(),
        )
        record = self.store.put(question_key(question.id), question.to_document(), expected_revision=ABSENT)
        created = self._to_question(record, self.active_version_id())
        logger.info(
            "question.create.success question_id=%s version=%s answers=%s",
            created.id,
            created.version,
            len(created.answers),
        )
        events.publish(events.QUESTION_CREATED, {"question_id": created.id, "version": created.version})
        return created

    def update_question(
        self,
        question_id: str,
        *,
        text: Any = UNSET,
        category: Any = UNSET,
        answers: Any = UNSET,
        in_assessment: Any = UNSET,
        version: Any = UNSET,
        expected_revision: Optional[int] = None,
    ) -> Question:
        """Apply a full-question edit.

        A supplied `answers` set replaces the existing one as a whole and is
        re-validated; toggling `in_assessment` alone leaves the answers alone.
        Supplying `version` at all raises ImmutableFieldError. When
        `expected_revision` is given the write only lands if the stored
        question has not moved since.
        """
        record = self.store.get(question_key(question_id))
        if record is None:
            raise NotFound(f"question {question_id} not found", question_id=question_id)
        if version is not UNSET:
            raise ImmutableFieldError(
                "version cannot be changed once a question is created",
                field="version",
                question_id=question_id,
            )
        if expected_revision is not None and expected_revision != record.revision:
            raise ConflictError(
                f"question {question_id} was modified concurrently",
                code="REVISION_CONFLICT",
                question_id=question_id,
            )

        current = Question.model_validate(record.value)
        changes: dict = {}
        if text is not UNSET:
            changes["text"] = validate_question_text(text)
        if category is not UNSET:
            changes["category"] = _normalize_category(category)
        if answers is not UNSET:
            changes["answers"] = _with_ids(validate_answer_set(answers))
        if in_assessment is not UNSET:
            changes["in_assessment"] = _require_bool(in_assessment, "in_assessment")

        if not changes:
            return self._to_question(record, self.active_version_id())

        updated = current.model_copy(update={**changes, "updated_at": self.clock()})
        new_record = self.store.put(
            question_key(question_id),
            updated.to_document(),
            expected_revision=record.revision,
        )
        result = self._to_question(new_record, self.active_version_id())
        logger.info(
            "question.update.success question_id=%s fields=%s",
            question_id,
            sorted(changes),
        )
        events.publish(events.QUESTION_UPDATED, {"question_id": question_id, "fields": sorted(changes)})
        return result

    def set_in_assessment(self, question_id: str, in_assessment: bool) -> Question:
        return self.update_question(question_id, in_assessment=in_assessment)

    def delete_question(self, question_id: str) -> None:
        if not self.store.delete(question_key(question_id)):
            raise NotFound(f"question {question_id} not found", question_id=question_id)
        logger.info("question.delete.success question_id=%s", question_id)
        events.publish(events.QUESTION_DELETED, {"question_id": question_id})


__all__ = ["QuestionBank", "UNSET"]
