"""Registry loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from moqt_interop_runner.configuration import ConfigurationError
from moqt_interop_runner.registry_model import (
    CLIENT_ROLE,
    RELAY_ROLE,
    EndpointStatus,
    TransportKind,
    describe_implementations,
    load_registry,
)


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def _write_registry(tmp_path: Path, document: dict) -> Path:
    return _write_file(tmp_path / "implementations.json", json.dumps(document))


def test_loads_json_registry_with_roles_and_endpoints(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "current_target": "draft-14",
            "implementations": {
                "moq-rs": {
                    "name": "moq-rs",
                    "draft_versions": ["draft-14", "draft-13"],
                    "roles": {
                        "client": {"docker": {"image": "moq-rs-client:latest"}},
                        "relay": {
                            "docker": {"image": "moq-rs-relay:latest"},
                            "remote": [
                                {"url": "moqt://relay.example.com:4443", "transport": "quic"},
                                {
                                    "url": "https://relay.example.com/moq",
                                    "transport": "webtransport",
                                    "status": "inactive",
                                    "tls_disable_verify": True,
                                },
                            ],
                        },
                    },
                }
            },
        },
    )

    registry = load_registry(registry_path)

    assert registry.current_target == 14
    implementation = registry.get("moq-rs")
    assert implementation is not None
    assert implementation.draft_versions == frozenset({13, 14})
    assert implementation.version_labels() == ("draft-13", "draft-14")
    relay = implementation.role(RELAY_ROLE)
    assert relay is not None
    assert relay.docker_image == "moq-rs-relay:latest"
    assert [endpoint.transport for endpoint in relay.remote] == [
        TransportKind.QUIC,
        TransportKind.WEBTRANSPORT,
    ]
    assert relay.remote[0].status is EndpointStatus.ACTIVE
    assert relay.remote[0].tls_disable_verify is False
    assert relay.remote[1].status is EndpointStatus.INACTIVE
    assert relay.remote[1].tls_disable_verify is True
    client = implementation.role(CLIENT_ROLE)
    assert client is not None
    assert client.docker_image == "moq-rs-client:latest"


def test_loads_yaml_registry_and_defaults_target_version(tmp_path: Path) -> None:
    registry_path = _write_file(
        tmp_path / "implementations.yaml",
        """
implementations:
  moxygen:
    draft_versions: [draft-12, draft-14]
    roles:
      relay:
        remote:
          - url: "moqt://moxygen.example.com:4433"
""",
    )

    registry = load_registry(registry_path)

    assert registry.current_target == 14
    moxygen = registry.get("moxygen")
    assert moxygen is not None
    assert moxygen.name == "moxygen"
    assert moxygen.has_role(RELAY_ROLE)
    assert not moxygen.has_role(CLIENT_ROLE)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("moqt://relay.example.com:4443", TransportKind.QUIC),
        ("https://relay.example.com/moq", TransportKind.WEBTRANSPORT),
        ("wss://relay.example.com", TransportKind.OTHER),
    ],
)
def test_transport_is_inferred_from_url_scheme_when_omitted(
    tmp_path: Path, url: str, expected: TransportKind
) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "implementations": {
                "relay-a": {
                    "draft_versions": ["draft-14"],
                    "roles": {"relay": {"remote": [{"url": url}]}},
                }
            }
        },
    )

    relay = load_registry(registry_path).get("relay-a").role(RELAY_ROLE)

    assert relay.remote[0].transport is expected


def test_unknown_transport_string_maps_to_other(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "implementations": {
                "relay-a": {
                    "draft_versions": ["draft-14"],
                    "roles": {
                        "relay": {"remote": [{"url": "moqt://a", "transport": "carrier-pigeon"}]}
                    },
                }
            }
        },
    )

    relay = load_registry(registry_path).get("relay-a").role(RELAY_ROLE)

    assert relay.remote[0].transport is TransportKind.OTHER


def test_empty_role_is_treated_as_absent(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "implementations": {
                "impl": {
                    "draft_versions": ["draft-14"],
                    "roles": {
                        "client": {"docker": {"image": "impl-client"}},
                        "relay": {"remote": []},
                    },
                }
            }
        },
    )

    registry = load_registry(registry_path)

    assert registry.get("impl").has_role(CLIENT_ROLE)
    assert not registry.get("impl").has_role(RELAY_ROLE)
    assert registry.with_role(RELAY_ROLE) == ()


def test_unknown_roles_are_ignored(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "implementations": {
                "impl": {
                    "draft_versions": ["draft-14"],
                    "roles": {
                        "observer": {"docker": {"image": "impl-observer"}},
                        "relay": {"docker": {"image": "impl-relay"}},
                    },
                }
            }
        },
    )

    registry = load_registry(registry_path)

    assert list(registry.get("impl").roles) == [RELAY_ROLE]
    assert registry.get("impl").role("observer") is None


def test_with_role_keeps_declaration_order(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "implementations": {
                key: {
                    "draft_versions": ["draft-14"],
                    "roles": {"client": {"docker": {"image": f"{key}-client"}}},
                }
                for key in ("zeta", "alpha", "mu")
            }
        },
    )

    clients = load_registry(registry_path).with_role(CLIENT_ROLE)

    assert [client.key for client in clients] == ["zeta", "alpha", "mu"]


def test_missing_registry_file_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Registry file not found"):
        load_registry(tmp_path / "missing.json")


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ([], "Registry root must be a mapping"),
        ({"implementations": {}}, "non-empty mapping"),
        (
            {"current_target": "latest", "implementations": {"a": {}}},
            "current_target",
        ),
        (
            {"implementations": {"a": {"draft_versions": ["draft-x"]}}},
            "Malformed draft version",
        ),
        (
            {
                "implementations": {
                    "a": {"draft_versions": [], "roles": {"relay": {"docker": {"image": "r"}}}}
                }
            },
            "draft_versions must not be empty",
        ),
        (
            {
                "implementations": {
                    "a": {
                        "draft_versions": ["draft-14"],
                        "roles": {"relay": {"remote": [{"transport": "quic"}]}},
                    }
                }
            },
            "url must be a string",
        ),
        (
            {
                "implementations": {
                    "a": {
                        "draft_versions": ["draft-14"],
                        "roles": {"relay": {"remote": [{"url": "moqt://a", "status": "paused"}]}},
                    }
                }
            },
            "must be 'active' or 'inactive'",
        ),
        (
            {
                "implementations": {
                    "a": {
                        "draft_versions": ["draft-14"],
                        "roles": {
                            "relay": {"remote": [{"url": "moqt://a", "tls_disable_verify": "yes"}]}
                        },
                    }
                }
            },
            "tls_disable_verify must be a boolean",
        ),
    ],
)
def test_invalid_registry_documents_raise_configuration_error(
    tmp_path: Path, document, message: str
) -> None:
    registry_path = _write_registry(tmp_path, document)

    with pytest.raises(ConfigurationError, match=message):
        load_registry(registry_path)


def test_unparsable_registry_is_a_configuration_error(tmp_path: Path) -> None:
    registry_path = _write_file(tmp_path / "implementations.yaml", "implementations: [unclosed")

    with pytest.raises(ConfigurationError, match="Failed to parse registry file"):
        load_registry(registry_path)


def test_describe_implementations_lists_versions_and_roles(tmp_path: Path) -> None:
    registry_path = _write_registry(
        tmp_path,
        {
            "current_target": "draft-13",
            "implementations": {
                "moq-rs": {
                    "name": "Moq RS",
                    "draft_versions": ["draft-14", "draft-13"],
                    "roles": {
                        "client": {"docker": {"image": "c"}},
                        "relay": {"docker": {"image": "r"}},
                    },
                }
            },
        },
    )

    lines = describe_implementations(load_registry(registry_path))

    assert "  moq-rs:" in lines
    assert "    Name: Moq RS" in lines
    assert "    Versions: draft-13, draft-14" in lines
    assert "    Roles: client, relay" in lines
    assert lines[-1] == "Current target: draft-13"
