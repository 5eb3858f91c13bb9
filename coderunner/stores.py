"""Question and result stores.

The engine only needs the two small protocols below. The in-memory
implementations back the HTTP app and the tests; a deployment plugs its own
persistence in through the FastAPI dependencies in ``main``.
"""
import threading
from typing import Callable, Dict, Optional, Protocol, Union

from .errors import NotFound
from .schemas import CodingQuestion, McqQuestion, Result


class QuestionStore(Protocol):
    def get_coding(self, question_id: str) -> Optional[CodingQuestion]: ...

    def get_mcq(self, question_id: str) -> Optional[McqQuestion]: ...


class ResultStore(Protocol):
    def get(self, result_id: str) -> Optional[Result]: ...

    def find(self, test_id: str) -> Optional[Result]: ...

    def save(self, result: Result) -> None: ...

    def update(self, result_id: str, mutate: Callable[[Result], Result]) -> Result:
        """Apply ``mutate`` to the stored result atomically and store its return value.

        Nothing is written when ``mutate`` raises.
        """
        ...


class InMemoryQuestionStore:

    def __init__(self):
        self._coding: Dict[str, CodingQuestion] = {}
        self._mcq: Dict[str, McqQuestion] = {}
        self._lock = threading.Lock()

    def add(self, question: Union[CodingQuestion, McqQuestion]) -> None:
        with self._lock:
            if isinstance(question, CodingQuestion):
                self._coding[question.id] = question
            else:
                self._mcq[question.id] = question

    def get_coding(self, question_id):
        with self._lock:
            return self._coding.get(question_id)

    def get_mcq(self, question_id):
        with self._lock:
            return self._mcq.get(question_id)


class InMemoryResultStore:

    def __init__(self):
        self._results: Dict[str, Result] = {}
        self._lock = threading.Lock()

    def get(self, result_id):
        with self._lock:
            result = self._results.get(result_id)
            return result.model_copy(deep=True) if result else None

    def find(self, test_id):
        with self._lock:
            for result in self._results.values():
                if result.test_id == test_id:
                    return result.model_copy(deep=True)
        return None

    def save(self, result):
        with self._lock:
            self._results[result.id] = result.model_copy(deep=True)

    def update(self, result_id, mutate):
        with self._lock:
            current = self._results.get(result_id)
            if current is None:
                raise NotFound('Result not found')
            updated = mutate(current.model_copy(deep=True))
            self._results[result_id] = updated.model_copy(deep=True)
            return updated
