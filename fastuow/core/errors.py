class FastUoWError(Exception):
    """``FastUoW`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    ...


class NotFoundError(FastUoWError):
    """식별자(id)로 조회한 엔티티가 반드시 있어야 하는데 없을 때 발생하는 에러.

    단순 조회(``get``)에서는 ``None`` 을 리턴하며 이 에러를 발생시키지 않습니다.
    """

    ...


class PersistenceError(FastUoWError):
    """커밋 실패 에러.

    이 에러가 발생하면 스테이징된 모든 변경은 폐기(rollback)된 상태입니다.
    """

    ...


class ConfigurationError(FastUoWError):
    """컨테이너 설정이나 환경 설정이 잘못되었을 때 발생하는 에러."""

    ...
