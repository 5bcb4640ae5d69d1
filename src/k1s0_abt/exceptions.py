"""abt ライブラリの例外型定義"""

from __future__ import annotations


class AbtError(Exception):
    """abt ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class AttemptsExhaustedError(AbtError):
    """全試行が失敗した場合のエラー。最後の失敗を cause に持つ。"""

    def __init__(self, attempts: int, last_error: Exception | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        msg = f"all {attempts} attempts failed"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(AbtErrorCodes.ATTEMPTS_EXHAUSTED, msg, cause=last_error)


class AbtErrorCodes:
    """AbtError のエラーコード定数。"""

    TRANSPORT_ERROR: str = "TRANSPORT_ERROR"
    STATUS_ERROR: str = "STATUS_ERROR"
    PARSE_ERROR: str = "PARSE_ERROR"
    TIMEOUT: str = "TIMEOUT"
    ATTEMPTS_EXHAUSTED: str = "ATTEMPTS_EXHAUSTED"
    INVALID_OPTIONS: str = "INVALID_OPTIONS"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
