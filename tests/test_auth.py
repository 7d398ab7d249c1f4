import pytest

from svcbalancer.auth import AuthGate
from svcbalancer.exceptions import AuthorizationError, BalancerException


class TestAuthGateWithoutSecret:
    @pytest.mark.parametrize("token", ["", None, "anything", "s3cret"])
    def test_rejects_every_token_outside_debug(self, token):
        gate = AuthGate(secret="", debug=False)

        assert not gate.authorize(token)
        with pytest.raises(AuthorizationError, match="no secret provided in config"):
            gate.require(token)

    @pytest.mark.parametrize("token", ["", None, "anything"])
    def test_accepts_every_token_in_debug(self, token):
        gate = AuthGate(secret="", debug=True)

        assert gate.authorize(token)
        gate.require(token)


class TestAuthGateWithSecret:
    @pytest.mark.parametrize("debug", [False, True])
    def test_accepts_the_exact_secret(self, debug):
        gate = AuthGate(secret="s3cret", debug=debug)

        assert gate.authorize("s3cret")

    @pytest.mark.parametrize("token", ["", None, "S3CRET", "s3cret ", "s3cre", "wrong", "séc"])
    def test_rejects_any_other_token(self, token):
        gate = AuthGate(secret="s3cret", debug=True)

        assert not gate.authorize(token)
        with pytest.raises(AuthorizationError, match="bad access token"):
            gate.require(token)

    def test_non_ascii_secret(self):
        gate = AuthGate(secret="pässwörd")

        assert gate.authorize("pässwörd")
        assert not gate.authorize("passwort")


def test_authorization_error_is_a_hard_failure():
    assert issubclass(AuthorizationError, BalancerException)
    assert not issubclass(AuthorizationError, OSError)
