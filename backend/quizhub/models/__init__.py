from quizhub.models.question import Question
from quizhub.models.test_result import TestResult

__all__ = ["Question", "TestResult"]
