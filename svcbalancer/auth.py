import secrets

from svcbalancer.exceptions import AuthorizationError
from svcbalancer.logger import logger


class AuthGate:
    """Shared-secret check guarding the status endpoint.

    Without a configured secret every request is rejected, unless the
    balancer runs in debug mode, where every request is accepted.
    """

    def __init__(self, secret: str, debug: bool = False) -> None:
        self.secret = secret
        self.debug = debug

    def require(self, token: str | None) -> None:
        """Raises AuthorizationError unless ``token`` grants access."""
        if not self.secret:
            if self.debug:
                return
            raise AuthorizationError("no secret provided in config")

        supplied = (token or "").encode("utf-8")
        if not secrets.compare_digest(supplied, self.secret.encode("utf-8")):
            logger.debug("Rejected a status request with a bad access token")
            raise AuthorizationError("bad access token")

    def authorize(self, token: str | None) -> bool:
        try:
            self.require(token)
        except AuthorizationError:
            return False
        return True
