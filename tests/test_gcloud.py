"""Tests for the gcloud token broker."""

import json
import subprocess

import pytest

from registry_authn import (
    GcloudAuthenticator,
    ProviderUnavailableError,
    TokenBrokerError,
    new_gcloud_authenticator,
)
from registry_authn import gcloud as gcloud_module

EXPIRY = "2030-01-01T00:00:00Z"
EXPIRY_TS = 1893456000.0


def helper_output(token, expiry=EXPIRY):
    return json.dumps({"credential": {"access_token": token, "token_expiry": expiry}})


class FakeRun:
    """Returns successive canned outputs."""

    def __init__(self, outputs, returncode=0):
        self.outputs = list(outputs)
        self.returncode = returncode
        self.calls = 0

    def __call__(self, args, **kwargs):
        self.calls += 1
        return subprocess.CompletedProcess(args, self.returncode, self.outputs.pop(0), "denied")


class TestGcloudAuthenticator:
    """Test token fetching and reuse."""

    def test_fetches_token(self, monkeypatch):
        """Test the first call runs gcloud."""
        run = FakeRun([helper_output("tok1")])
        monkeypatch.setattr(gcloud_module.subprocess, "run", run)
        auth = GcloudAuthenticator("gcloud", clock=lambda: EXPIRY_TS - 3600)
        cfg = auth.authorization()
        assert cfg.username == "_token"
        assert cfg.password == "tok1"
        assert run.calls == 1

    def test_reuses_token(self, monkeypatch):
        """Test tokens are reused until the refresh margin."""
        run = FakeRun([helper_output("tok1"), helper_output("tok2")])
        monkeypatch.setattr(gcloud_module.subprocess, "run", run)
        now = [EXPIRY_TS - 3600]
        auth = GcloudAuthenticator("gcloud", refresh_margin=300, clock=lambda: now[0])

        assert auth.authorization().password == "tok1"
        assert auth.authorization().password == "tok1"
        assert run.calls == 1

        now[0] = EXPIRY_TS - 299
        assert auth.authorization().password == "tok2"
        assert run.calls == 2

    def test_command_failure(self, monkeypatch):
        """Test non-zero exit raises TokenBrokerError."""
        monkeypatch.setattr(gcloud_module.subprocess, "run", FakeRun([""], returncode=1))
        with pytest.raises(TokenBrokerError, match="denied"):
            GcloudAuthenticator("gcloud").authorization()

    def test_malformed_output(self, monkeypatch):
        """Test malformed output raises TokenBrokerError."""
        monkeypatch.setattr(gcloud_module.subprocess, "run", FakeRun(['{"credential": {}}']))
        with pytest.raises(TokenBrokerError, match="Malformed"):
            GcloudAuthenticator("gcloud").authorization()


class TestFactory:
    """Test construction of the broker."""

    def test_not_installed(self, monkeypatch):
        """Test missing gcloud raises ProviderUnavailableError."""
        monkeypatch.setattr(gcloud_module.shutil, "which", lambda cmd: None)
        with pytest.raises(ProviderUnavailableError):
            new_gcloud_authenticator()

    def test_installed(self, monkeypatch):
        """Test the resolved executable path is used and a token is fetched."""
        run = FakeRun([helper_output("tok1")])
        monkeypatch.setattr(gcloud_module.shutil, "which", lambda cmd: f"/usr/bin/{cmd}")
        monkeypatch.setattr(gcloud_module.subprocess, "run", run)
        auth = new_gcloud_authenticator(refresh_margin=60)
        assert auth.command == "/usr/bin/gcloud"
        assert auth.refresh_margin == 60
        assert run.calls == 1

    def test_logged_out(self, monkeypatch):
        """Test an installed gcloud that cannot produce a token is unavailable."""
        monkeypatch.setattr(gcloud_module.shutil, "which", lambda cmd: f"/usr/bin/{cmd}")
        monkeypatch.setattr(gcloud_module.subprocess, "run", FakeRun([""], returncode=1))
        with pytest.raises(ProviderUnavailableError, match="cannot provide a token"):
            new_gcloud_authenticator()


def test_parse_expiry_offsets():
    """Test RFC 3339 timestamps with and without Z."""
    assert gcloud_module._parse_expiry(EXPIRY) == EXPIRY_TS
    assert gcloud_module._parse_expiry("2030-01-01T01:00:00+01:00") == EXPIRY_TS
    assert gcloud_module._parse_expiry("2030-01-01T00:00:00") == EXPIRY_TS
