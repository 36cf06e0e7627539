import pytest

from nezhadash.host import IP, Host, HostState, SensorTemperature


def test_state_round_trip():
    state = HostState(
        cpu=12.5,
        mem_used=1024,
        swap_used=8888,
        load_1=0.5,
        temperatures=[SensorTemperature(name="cpu0", temperature=41.0)],
        gpu=[3.0, 7.5],
    )
    assert HostState.from_dict(state.to_dict()) == state


def test_state_to_dict_omits_zero_fields():
    result = HostState(swap_used=8888).to_dict()
    assert result == {"swap_used": 8888}


def test_state_temperature_keys():
    result = HostState(temperatures=[SensorTemperature(name="cpu0", temperature=0.0)]).to_dict()
    assert result["temperatures"] == [{"Name": "cpu0", "Temperature": 0.0}]


def test_state_from_empty_dict_is_default():
    assert HostState.from_dict({}) == HostState()


def test_host_round_trip():
    host = Host(platform="linux", platform_version="6.1", cpu=["x"], mem_total=2048, version="1.0", gpu=["g"])
    assert Host.from_dict(host.to_dict()) == host


def test_host_filter_drops_versions():
    host = Host(platform="linux", platform_version="6.1", cpu=["x"], mem_total=2048, arch="amd64", version="1.0")
    filtered = host.filter()
    assert filtered.platform_version == ""
    assert filtered.version == ""
    assert (filtered.platform, filtered.cpu, filtered.mem_total, filtered.arch) == ("linux", ["x"], 2048, "amd64")


def test_host_filter_copies_lists():
    host = Host(cpu=["x"])
    filtered = host.filter()
    filtered.cpu.append("y")
    assert host.cpu == ["x"]


@pytest.mark.parametrize(
    "v4, v6, expected",
    [
        ("1.1.1.1", "::1", "1.1.1.1/::1"),
        ("1.1.1.1", "", "1.1.1.1"),
        ("", "::1", "::1"),
        ("", "", ""),
    ],
)
def test_ip_join(v4, v6, expected):
    assert IP(ipv4_addr=v4, ipv6_addr=v6).join() == expected