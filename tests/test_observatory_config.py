import pytest

from corenet.observatory.config import Config, NFEndpoint, default_config, load_config


def test_defaults():
    cfg = default_config()
    assert cfg.port == 9090
    assert cfg.bind_address == "127.0.0.1"
    assert cfg.event_buffer == 500
    assert cfg.auto_spawn_default_ue is True
    assert cfg.default_ue_profile == "local"
    assert [nf.id for nf in cfg.nfs] == ["NRF", "AMF", "SMF", "UPF", "gNB", "UDM"]
    assert cfg.nfs[0].health_url == "http://127.0.0.1:8000/health"


def test_listen_addr_joins_host_and_port():
    assert default_config().listen_addr() == "127.0.0.1:9090"
    assert Config(bind_address="", port=1234).listen_addr() == ":1234"


def test_load_overrides_only_given_fields(tmp_path):
    path = tmp_path / "obs.yaml"
    path.write_text("port: 7070\nrepo_root: /srv/sim\n")
    cfg = load_config(path)
    assert cfg.port == 7070
    assert cfg.repo_root == "/srv/sim"
    assert cfg.bind_address == default_config().bind_address
    assert cfg.nfs == default_config().nfs


def test_load_replaces_nf_list(tmp_path):
    path = tmp_path / "obs.yaml"
    path.write_text(
        "nfs:\n"
        "  - id: X\n"
        "    health_url: http://localhost:1/health\n"
    )
    cfg = load_config(path)
    assert cfg.nfs == [NFEndpoint(id="X", health_url="http://localhost:1/health")]


@pytest.mark.parametrize("value", ["0", "-3"])
def test_non_positive_event_buffer_falls_back(tmp_path, value):
    path = tmp_path / "obs.yaml"
    path.write_text(f"event_buffer: {value}\n")
    assert load_config(path).event_buffer == 500


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "obs.yaml"
    path.write_text("")
    assert load_config(path) == default_config()


def test_bad_type_is_rejected(tmp_path):
    path = tmp_path / "obs.yaml"
    path.write_text("port: [1, 2]\n")
    with pytest.raises(ValueError, match="parse config"):
        load_config(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")