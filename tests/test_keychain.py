"""Tests for the default keychain."""

import json
import subprocess

import pytest

from registry_authn import (
    ANONYMOUS,
    AuthEntry,
    Basic,
    Bearer,
    CredentialConfig,
    CredentialConfigError,
    DefaultKeychain,
    FromConfig,
    Keychain,
    encode_basic_auth,
)
from registry_authn import helper as helper_module


def loader_for(cfg):
    def load(config_dir=None):
        return cfg
    return load


def failing_loader(config_dir=None):
    raise CredentialConfigError("broken")


class FakeHelpers:
    """Stands in for docker-credential-* programs, keyed by helper and server."""

    def __init__(self, store):
        self.store = store
        self.calls = []

    def __call__(self, args, input=None, **kwargs):
        program = args[0]
        self.calls.append((program, input))
        creds = self.store.get((program, input))
        if creds is None:
            return subprocess.CompletedProcess(
                args, 1, "credentials not found in native keychain\n", "")
        payload = {"ServerURL": input, "Username": creds[0], "Secret": creds[1]}
        return subprocess.CompletedProcess(args, 0, json.dumps(payload), "")


@pytest.fixture
def helpers(monkeypatch):
    def install(store=None):
        fake = FakeHelpers(store or {})
        monkeypatch.setattr(helper_module.subprocess, "run", fake)
        return fake
    return install


class TestDefaultKeychain:
    """Test keychain resolution order."""

    def test_satisfies_protocol(self):
        """Test DefaultKeychain is a Keychain."""
        assert isinstance(DefaultKeychain(), Keychain)

    def test_nothing_configured(self):
        """Test empty config resolves to ANONYMOUS."""
        keychain = DefaultKeychain(loader=loader_for(CredentialConfig()))
        assert keychain.resolve("my.registry.io") is ANONYMOUS

    def test_load_failure_is_anonymous(self):
        """Test config load failure resolves to ANONYMOUS."""
        keychain = DefaultKeychain(loader=failing_loader)
        assert keychain.resolve("my.registry.io") is ANONYMOUS

    def test_cred_helper(self, helpers):
        """Test per-host credHelpers are asked for credentials while resolving."""
        run = helpers({("docker-credential-pass", "my.registry.io"): ("u", "s")})
        cfg = CredentialConfig(cred_helpers={"my.registry.io": "pass"})
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert isinstance(auth, FromConfig)
        assert auth.authorization().username == "u"
        assert auth.authorization().password == "s"
        assert run.calls == [("docker-credential-pass", "my.registry.io")]

    def test_cred_helper_without_credentials(self, helpers):
        """Test a per-host helper with nothing stored resolves to ANONYMOUS."""
        helpers()
        cfg = CredentialConfig(cred_helpers={"my.registry.io": "pass"})
        assert DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io") is ANONYMOUS

    def test_cred_helper_failure(self, monkeypatch):
        """Test a helper that cannot run resolves to ANONYMOUS."""
        def missing(args, **kwargs):
            raise FileNotFoundError(args[0])

        monkeypatch.setattr(helper_module.subprocess, "run", missing)
        cfg = CredentialConfig(cred_helpers={"my.registry.io": "nope"})
        assert DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io") is ANONYMOUS

    def test_cred_helper_beats_auths(self, helpers):
        """Test credHelpers win over inline auths."""
        helpers({("docker-credential-pass", "my.registry.io"): ("helper-user", "s")})
        cfg = CredentialConfig(
            cred_helpers={"my.registry.io": "pass"},
            auths={"my.registry.io": AuthEntry(username="u", password="p")},
        )
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert auth.authorization().username == "helper-user"

    def test_inline_basic(self):
        """Test inline auth field becomes Basic."""
        cfg = CredentialConfig(auths={"my.registry.io": AuthEntry(auth=encode_basic_auth("u", "p"))})
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert isinstance(auth, Basic)
        assert auth.authorization().password == "p"

    def test_inline_docker_hub_aliases(self):
        """Test docker.io style auths keys match Docker Hub."""
        for key in ("docker.io", "registry-1.docker.io", "https://index.docker.io/v1/"):
            cfg = CredentialConfig(auths={key: AuthEntry(username="u", password="p")})
            auth = DefaultKeychain(loader=loader_for(cfg)).resolve("index.docker.io")
            assert isinstance(auth, Basic), key

    def test_inline_registry_token(self):
        """Test inline registry token becomes Bearer."""
        cfg = CredentialConfig(auths={"my.registry.io": AuthEntry(registry_token="t")})
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert isinstance(auth, Bearer)

    def test_inline_identity_token(self):
        """Test inline identity token is carried through."""
        cfg = CredentialConfig(auths={"my.registry.io": AuthEntry(identity_token="refresh")})
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert isinstance(auth, FromConfig)
        assert auth.authorization().identity_token == "refresh"

    def test_unusable_entry_falls_through(self, helpers):
        """Test a broken auths entry falls back to credsStore."""
        helpers({("docker-credential-desktop", "my.registry.io"): ("d", "s")})
        cfg = CredentialConfig(
            auths={"my.registry.io": AuthEntry(auth="!!!")},
            creds_store="desktop",
        )
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("my.registry.io")
        assert auth.authorization().username == "d"

    def test_creds_store(self, helpers):
        """Test global credsStore is used when nothing else matches."""
        run = helpers({("docker-credential-desktop", "other.io"): ("d", "s")})
        cfg = CredentialConfig(creds_store="desktop")
        auth = DefaultKeychain(loader=loader_for(cfg)).resolve("other.io")
        assert isinstance(auth, FromConfig)
        assert auth.authorization().password == "s"
        assert run.calls == [("docker-credential-desktop", "other.io")]

    def test_creds_store_without_credentials(self, helpers):
        """Test credsStore with nothing stored for the host resolves to ANONYMOUS."""
        helpers({("docker-credential-desktop", "other.io"): ("d", "s")})
        cfg = CredentialConfig(creds_store="desktop")
        assert DefaultKeychain(loader=loader_for(cfg)).resolve("gcr.io") is ANONYMOUS

    def test_passes_config_dir(self, tmp_path):
        """Test the configured directory reaches the loader."""
        seen = []

        def load(config_dir=None):
            seen.append(config_dir)
            return CredentialConfig()

        DefaultKeychain(tmp_path, loader=load).resolve("x.io")
        assert seen == [tmp_path]
