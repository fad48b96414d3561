import json

import pytest

from rstudio_cluster import discovery
from rstudio_cluster.discovery import DiscoveryError


class FakeAz:
    """Records az_tsv calls and replays canned answers in order."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, args, echo=True):
        self.calls.append((args, echo))
        return self.answers.pop(0)

    def query(self, index=0):
        args = self.calls[index][0]
        return args[args.index("--query") + 1]


@pytest.fixture
def fake_az(monkeypatch):
    def install(*answers):
        fake = FakeAz(*answers)
        monkeypatch.setattr(discovery, "az_tsv", fake)
        return fake

    return install


def test_find_key_vault_uses_prefix_query(fake_az):
    fake = fake_az("ad-key-vault-abc")
    assert discovery.find_key_vault("rg", "ad-key-vault") == "ad-key-vault-abc"
    args = fake.calls[0][0]
    assert args[:4] == ["keyvault", "list", "--resource-group", "rg"]
    assert fake.query() == "[?starts_with(name, 'ad-key-vault')].name | [0]"


def test_latest_image_sorts_by_name(fake_az):
    fake = fake_az("rstudio_image_20250102")
    assert discovery.latest_image("rg", "rstudio_image") == "rstudio_image_20250102"
    assert fake.query() == "[?starts_with(name, 'rstudio_image')]|sort_by(@, &name)[-1].name"


def test_list_images_splits_lines(fake_az):
    fake_az("img_a\nimg_b\n\n")
    assert discovery.list_images("rg") == ["img_a", "img_b"]


def test_list_images_empty(fake_az):
    fake_az(None)
    assert discovery.list_images("rg") == []


def test_find_storage_account(fake_az):
    fake = fake_az("nfsabc123")
    assert discovery.find_storage_account("rg", "nfs") == "nfsabc123"
    assert fake.query() == "[?starts_with(name, 'nfs')].name | [0]"


def test_get_secret_json_is_not_echoed(fake_az):
    fake = fake_az(json.dumps({"username": "ubuntu", "password": "pw"}))
    assert discovery.get_secret_json("kv", "ubuntu-credentials") == {
        "username": "ubuntu",
        "password": "pw",
    }
    args, echo = fake.calls[0]
    assert echo is False
    assert args[:3] == ["keyvault", "secret", "show"]
    assert fake.query() == "value"


@pytest.mark.parametrize(
    "raw,message",
    [
        (None, "is empty"),
        ("not-json", "not valid JSON"),
        ("[1, 2]", "not a JSON object"),
    ],
)
def test_get_secret_json_errors(fake_az, raw, message):
    fake_az(raw)
    with pytest.raises(DiscoveryError, match=message):
        discovery.get_secret_json("kv", "s")


def test_get_secret_field_missing(fake_az):
    fake_az(json.dumps({"username": "ubuntu"}))
    with pytest.raises(DiscoveryError, match="no 'password' field"):
        discovery.get_secret_field("kv", "ubuntu-credentials", "password")


def test_public_fqdn_by_label_prefix(fake_az):
    fake = fake_az("win-ad-x1.centralus.cloudapp.azure.com")
    assert discovery.public_fqdn_by_label_prefix("rg", "win-ad-").startswith("win-ad-x1")
    assert fake.query() == (
        "[?dnsSettings && starts_with(dnsSettings.domainNameLabel, 'win-ad-')]"
        ".dnsSettings.fqdn | [0]"
    )


def test_public_ip_fqdn(fake_az):
    fake = fake_az("rstudio-x.centralus.cloudapp.azure.com")
    assert discovery.public_ip_fqdn("rg", "pip") == "rstudio-x.centralus.cloudapp.azure.com"
    assert fake.query() == "dnsSettings.fqdn"


def test_healthy_backends(fake_az):
    fake = fake_az("10.0.0.5\tHealthy\n")
    assert discovery.healthy_backends("rg", "gw") == ["10.0.0.5\tHealthy"]
    assert "servers[?health == 'Healthy']" in fake.query()


def test_healthy_backends_none(fake_az):
    fake_az(None)
    assert discovery.healthy_backends("rg", "gw") == []


def test_require():
    assert discovery.require("x", "missing") == "x"
    with pytest.raises(DiscoveryError, match="missing thing"):
        discovery.require(None, "missing thing")


def test_delete_image(monkeypatch):
    calls = []
    monkeypatch.setattr(discovery, "az", lambda args: calls.append(args))
    discovery.delete_image("rg", "img")
    assert calls == [["image", "delete", "--name", "img", "--resource-group", "rg"]]
