import asyncio
import datetime
import ipaddress
import json

import pytest

import hrobot

SERVER = {
    "server_ip": "123.123.123.123",
    "server_ipv6_net": "2a01:f48:111:4221::",
    "server_number": 321,
    "server_name": "server1",
    "product": "DS 3000",
    "dc": "NBG1-DC1",
    "traffic": "5 TB",
    "status": "ready",
    "cancelled": False,
    "paid_until": "2010-09-02",
    "ip": ["123.123.123.123"],
    "subnet": [{"ip": "2a01:4f8:111:4221::", "mask": "64"}],
}

FIREWALL = {
    "server_ip": "123.123.123.123",
    "server_number": 321,
    "status": "active",
    "filter_ipv6": False,
    "whitelist_hos": True,
    "port": "main",
    "rules": {
        "input": [
            {
                "ip_version": "ipv4",
                "name": "rule 1",
                "dst_ip": None,
                "src_ip": "1.1.1.1",
                "dst_port": "80",
                "src_port": None,
                "protocol": None,
                "tcp_flags": None,
                "action": "accept",
            }
        ],
        "output": [
            {
                "ip_version": None,
                "name": "Allow all",
                "dst_ip": None,
                "src_ip": None,
                "dst_port": None,
                "src_port": None,
                "protocol": None,
                "tcp_flags": None,
                "action": "accept",
            }
        ],
    },
}

TEMPLATE = {
    "id": 1,
    "name": "My template",
    "filter_ipv6": False,
    "whitelist_hos": True,
    "is_default": True,
    "rules": {"input": [], "output": []},
}

SSH_KEY = {
    "name": "key1",
    "fingerprint": "56:29:99:a4:5d:ed:ac:95:c1:f5:88:82:90:5d:dd:10",
    "type": "ED25519",
    "size": 256,
    "data": "ssh-ed25519 AAAA",
    "created_at": "2021-12-31 23:59:59",
}


def _call(robot, mode, method, *args, **kwargs):
    callable_obj = getattr(robot, method if mode == "sync" else f"{method}_async")
    result = callable_obj(*args, **kwargs)
    return asyncio.run(result) if mode == "async" else result


def _assert_call(calls, *, index=0, method=None, url=None, content=None, authorization=None):
    assert calls
    assert len(calls) > index
    call = calls[index]
    if method is not None:
        assert call["method"] == method
    if url is not None:
        assert call["url"] == url
    if content is not None:
        assert call["content"] == content
    if authorization is not None:
        assert call["authorization"] == authorization
    return call


def test_list_servers_unwraps_every_element(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps([{"server": SERVER}, {"server": dict(SERVER, server_number=322)}])))

    servers = _call(robot, mode, "list_servers")

    assert [server.id for server in servers] == [321, 322]
    assert servers[0].ipv4 == ipaddress.IPv4Address("123.123.123.123")
    assert servers[0].paid_until == datetime.date(2010, 9, 2)
    assert servers[0].availability is None
    call = _assert_call(
        calls,
        method="GET",
        url="https://robot-ws.your-server.de/server",
        authorization=robot.credentials.header_value,
    )
    assert call["content"] is None


def test_get_server_reads_flags(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    flags = {key: True for key in hrobot.ServerFlags.KEYS}
    install(response_factory(200, json.dumps({"server": dict(SERVER, traffic="unlimited", **flags)})))

    server = _call(robot, mode, "get_server", 321)

    assert server.traffic is None
    assert server.status is hrobot.ServerStatus.READY
    assert server.availability.wol is True
    assert server.subnets[0].mask == "64"


def test_rename_server_posts_form_body(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"server": dict(SERVER, server_name="new name")})))

    server = _call(robot, mode, "rename_server", 321, "new name")

    assert server.name == "new name"
    _assert_call(
        calls,
        method="POST",
        url="https://robot-ws.your-server.de/server/321",
        content=b"server_name=new+name",
    )


def test_get_server_cancellation_cancellable(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    body = {
        "cancellation": {
            "server_ip": "123.123.123.123",
            "server_number": 321,
            "server_name": "server1",
            "earliest_cancellation_date": "2024-01-31",
            "cancelled": False,
            "reservation_possible": True,
            "reserved": False,
            "cancellation_date": None,
            "cancellation_reason": ["Upgrade", "Too expensive"],
        }
    }
    calls = install(response_factory(200, json.dumps(body)))

    cancellation = _call(robot, mode, "get_server_cancellation", 321)

    assert isinstance(cancellation, hrobot.Cancellable)
    assert cancellation.earliest_cancellation_date == datetime.date(2024, 1, 31)
    assert cancellation.cancellation_reasons == ["Upgrade", "Too expensive"]
    _assert_call(calls, method="GET", url="https://robot-ws.your-server.de/server/321/cancellation")


def test_cancel_server_immediately(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    body = {
        "cancellation": {
            "server_number": 321,
            "cancellation_date": "2024-01-15",
            "cancellation_reason": None,
            "reserved": False,
        }
    }
    calls = install(response_factory(200, json.dumps(body)))

    cancellation = _call(robot, mode, "cancel_server", 321, hrobot.Cancel())

    assert cancellation == hrobot.Cancelled(date=datetime.date(2024, 1, 15), reason=None, reserved=False)
    _assert_call(calls, method="POST", content=b"cancellation_date=now&reserved=false")


def test_withdraw_server_cancellation_accepts_empty_body(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, ""))

    assert _call(robot, mode, "withdraw_server_cancellation", 321) is None
    _assert_call(calls, method="DELETE", url="https://robot-ws.your-server.de/server/321/cancellation")


def test_get_firewall_parses_rules(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    install(response_factory(200, json.dumps({"firewall": FIREWALL})))

    firewall = _call(robot, mode, "get_firewall", 321)

    assert firewall.status is hrobot.FirewallState.ACTIVE
    assert firewall.port is hrobot.SwitchPort.MAIN
    rule = firewall.rules.ingress[0]
    assert rule.filter == hrobot.Ipv4Filter(
        src_ip=ipaddress.IPv4Network("1.1.1.1/32"),
        dst_port=hrobot.PortRange.port(80),
    )
    assert firewall.rules.egress == [hrobot.Rule.accept("Allow all")]


def test_set_firewall_config_sends_nested_form(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"firewall": FIREWALL})))
    config = hrobot.FirewallConfig(
        filter_ipv6=False,
        rules=hrobot.Rules(ingress=[hrobot.Rule.accept("web").matching(hrobot.Ipv4Filter.tcp().to_port(443))]),
    )

    _call(robot, mode, "set_firewall_config", 321, config)

    _assert_call(
        calls,
        method="POST",
        url="https://robot-ws.your-server.de/firewall/321",
        content=(
            "status=active&filter_ipv6=false&whitelist_hos=true"
            "&rules%5Binput%5D%5B0%5D%5Bname%5D=web"
            "&rules%5Binput%5D%5B0%5D%5Bip_version%5D=ipv4"
            "&rules%5Binput%5D%5B0%5D%5Bdst_port%5D=443"
            "&rules%5Binput%5D%5B0%5D%5Bprotocol%5D=tcp"
            "&rules%5Binput%5D%5B0%5D%5Baction%5D=accept"
        ).encode(),
    )


def test_apply_firewall_template(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"firewall": FIREWALL})))

    _call(robot, mode, "apply_firewall_template", 321, 7)

    _assert_call(calls, method="POST", content=b"template_id=7")


def test_delete_firewall_returns_firewall(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    disabled = dict(FIREWALL, status="disabled", rules={"input": [], "output": []})
    calls = install(response_factory(200, json.dumps({"firewall": disabled})))

    firewall = _call(robot, mode, "delete_firewall", 321)

    assert firewall.status is hrobot.FirewallState.DISABLED
    assert firewall.rules == hrobot.Rules()
    _assert_call(calls, method="DELETE", url="https://robot-ws.your-server.de/firewall/321")


def test_firewall_templates(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    listing = dict(TEMPLATE)
    listing.pop("rules")
    calls = install(response_factory(200, json.dumps([{"firewall_template": listing}])))

    templates = _call(robot, mode, "list_firewall_templates")

    assert templates == [
        hrobot.FirewallTemplateReference(
            id=1, name="My template", filter_ipv6=False, whitelist_hetzner_services=True, is_default=True
        )
    ]
    _assert_call(calls, url="https://robot-ws.your-server.de/firewall/template")


def test_get_and_update_firewall_template(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"firewall_template": TEMPLATE})))

    template = _call(robot, mode, "get_firewall_template", 1)
    _call(robot, mode, "update_firewall_template", 1, template.config())

    assert template.is_default is True
    _assert_call(calls, index=0, method="GET", url="https://robot-ws.your-server.de/firewall/template/1")
    _assert_call(
        calls,
        index=1,
        method="POST",
        url="https://robot-ws.your-server.de/firewall/template/1",
        content=b"name=My+template&filter_ipv6=false&whitelist_hos=true&is_default=true",
    )


def test_create_firewall_template(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"firewall_template": TEMPLATE})))

    created = _call(robot, mode, "create_firewall_template", hrobot.FirewallTemplateConfig(name="My template"))

    assert created.id == 1
    _assert_call(calls, method="POST", url="https://robot-ws.your-server.de/firewall/template")


def test_delete_firewall_template_expects_empty_body(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, ""))

    assert _call(robot, mode, "delete_firewall_template", 1) is None
    _assert_call(calls, method="DELETE", url="https://robot-ws.your-server.de/firewall/template/1")


def test_ssh_keys(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps([{"key": SSH_KEY}])))

    keys = _call(robot, mode, "list_ssh_keys")

    assert keys[0].algorithm == "ED25519"
    assert keys[0].bits == 256
    assert keys[0].created_at == datetime.datetime(2021, 12, 31, 23, 59, 59)
    _assert_call(calls, url="https://robot-ws.your-server.de/key")


def test_create_rename_and_remove_ssh_key(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"key": SSH_KEY})))
    fingerprint = SSH_KEY["fingerprint"]

    _call(robot, mode, "create_ssh_key", "key1", "ssh-ed25519 AAAA")
    _call(robot, mode, "rename_ssh_key", fingerprint, "key2")
    key = _call(robot, mode, "get_ssh_key", fingerprint)

    assert key.fingerprint == fingerprint
    _assert_call(calls, index=0, method="POST", content=b"name=key1&data=ssh-ed25519+AAAA")
    _assert_call(
        calls,
        index=1,
        method="POST",
        url=f"https://robot-ws.your-server.de/key/{fingerprint}",
        content=b"name=key2",
    )
    _assert_call(calls, index=2, method="GET", url=f"https://robot-ws.your-server.de/key/{fingerprint}")


def test_remove_ssh_key(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, ""))

    assert _call(robot, mode, "remove_ssh_key", "aa:bb") is None
    _assert_call(calls, method="DELETE", url="https://robot-ws.your-server.de/key/aa:bb")


def test_rdns_entries(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    entry = {"rdns": {"ip": "2a01:4f8:111:4221::1", "ptr": "host.example.com"}}
    calls = install(response_factory(200, json.dumps([entry])))

    entries = _call(robot, mode, "list_rdns_entries")

    assert entries == [hrobot.RdnsEntry(ip=ipaddress.ip_address("2a01:4f8:111:4221::1"), ptr="host.example.com")]
    _assert_call(calls, url="https://robot-ws.your-server.de/rdns")


def test_get_rdns_entry_returns_ptr(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"rdns": {"ip": "1.2.3.4", "ptr": "host.example.com"}})))

    assert _call(robot, mode, "get_rdns_entry", ipaddress.IPv4Address("1.2.3.4")) == "host.example.com"
    _assert_call(calls, url="https://robot-ws.your-server.de/rdns/1.2.3.4")


@pytest.mark.parametrize(("method_name", "http_method"), [("create_rdns_entry", "PUT"), ("update_rdns_entry", "POST")])
def test_create_and_update_rdns_entry(mode_and_mock, response_factory, robot, method_name, http_method):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"rdns": {"ip": "1.2.3.4", "ptr": "new.example.com"}})))

    entry = _call(robot, mode, method_name, "1.2.3.4", "new.example.com")

    assert entry.ptr == "new.example.com"
    _assert_call(calls, method=http_method, url="https://robot-ws.your-server.de/rdns/1.2.3.4", content=b"ptr=new.example.com")


def test_delete_rdns_entry(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, ""))

    assert _call(robot, mode, "delete_rdns_entry", "1.2.3.4") is None
    _assert_call(calls, method="DELETE", url="https://robot-ws.your-server.de/rdns/1.2.3.4")


def test_get_reset_options(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    body = {"reset": {"server_ip": "123.123.123.123", "server_number": 321, "type": ["sw", "hw", "man", "future"]}}
    calls = install(response_factory(200, json.dumps(body)))

    options = _call(robot, mode, "get_reset_options", 321)

    assert options == [hrobot.Reset.SOFTWARE, hrobot.Reset.HARDWARE, hrobot.Reset.MANUAL, "future"]
    _assert_call(calls, method="GET", url="https://robot-ws.your-server.de/reset/321")


def test_trigger_reset(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"reset": {"server_ip": "123.123.123.123", "type": "hw"}})))

    assert _call(robot, mode, "trigger_reset", 321, hrobot.Reset.HARDWARE) is hrobot.Reset.HARDWARE
    _assert_call(calls, method="POST", url="https://robot-ws.your-server.de/reset/321", content=b"type=hw")


def test_wake_on_lan(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"wol": {"server_ip": "123.123.123.123", "server_number": 321}})))

    assert _call(robot, mode, "is_wake_on_lan_available", 321) is True
    assert _call(robot, mode, "trigger_wake_on_lan", 321) is None
    _assert_call(calls, index=0, method="GET", url="https://robot-ws.your-server.de/wol/321")
    _assert_call(calls, index=1, method="POST", url="https://robot-ws.your-server.de/wol/321")


def test_wake_on_lan_unavailable_is_false(mode_and_mock, response_factory, robot):
    mode, install = mode_and_mock
    error = {"error": {"status": 404, "code": "WOL_NOT_AVAILABLE", "message": "Wake On Lan not available"}}
    install(response_factory(404, json.dumps(error)))

    assert _call(robot, mode, "is_wake_on_lan_available", 321) is False


@pytest.mark.parametrize(
    ("method_name", "args"),
    [("rename_server", (321, object())), ("trigger_reset", (321, object())), ("create_ssh_key", ("key", b"raw"))],
)
def test_unencodable_body_fails_before_sending(mode_and_mock, response_factory, robot, method_name, args):
    mode, install = mode_and_mock
    calls = install(response_factory(200, json.dumps({"server": SERVER})))

    with pytest.raises(hrobot.SerializationError):
        _call(robot, mode, method_name, *args)
    assert calls == []
