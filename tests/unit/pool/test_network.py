"""Unit tests for controller and local address resolution."""

import socket
from types import SimpleNamespace

import pytest
from pytest_mock import MockerFixture

from rfarm.exceptions import AddressResolutionError
from rfarm.pool import get_local_ip, resolve_controller_address


def _addr(family: int, address: str) -> SimpleNamespace:
    return SimpleNamespace(family=family, address=address)


def _stats(*, isup: bool) -> SimpleNamespace:
    return SimpleNamespace(isup=isup)


class TestResolveControllerAddress:
    def test_literal_ipv4_is_returned_without_lookup(self, mocker: MockerFixture) -> None:
        getaddrinfo = mocker.patch("rfarm.pool._network.socket.getaddrinfo")

        assert resolve_controller_address("192.168.1.10") == "192.168.1.10"
        getaddrinfo.assert_not_called()

    def test_literal_ipv6_is_canonicalized(self) -> None:
        assert resolve_controller_address("2001:0db8:0000::0001") == "2001:db8::1"

    def test_surrounding_whitespace_ignored(self) -> None:
        assert resolve_controller_address(" 10.0.0.1 ") == "10.0.0.1"

    def test_dns_name_uses_first_result(self, mocker: MockerFixture) -> None:
        getaddrinfo = mocker.patch(
            "rfarm.pool._network.socket.getaddrinfo",
            return_value=[
                (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.1.2.3", 0)),
                (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.1.2.4", 0)),
            ],
        )

        assert resolve_controller_address("render-ctl.local") == "10.1.2.3"
        getaddrinfo.assert_called_once_with(
            "render-ctl.local", None, proto=socket.IPPROTO_TCP
        )

    def test_unresolvable_name(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(
            "rfarm.pool._network.socket.getaddrinfo",
            side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
        )

        with pytest.raises(AddressResolutionError, match="Can't resolve DNS name") as exc_info:
            _ = resolve_controller_address("nowhere.invalid")

        assert exc_info.value.host == "nowhere.invalid"
        assert isinstance(exc_info.value.cause, socket.gaierror)

    def test_empty_result_is_an_error(self, mocker: MockerFixture) -> None:
        _ = mocker.patch("rfarm.pool._network.socket.getaddrinfo", return_value=[])

        with pytest.raises(AddressResolutionError):
            _ = resolve_controller_address("empty.invalid")

    def test_blank_host_is_an_error(self) -> None:
        with pytest.raises(AddressResolutionError, match="empty"):
            _ = resolve_controller_address("   ")


class TestGetLocalIp:
    def _patch(
        self,
        mocker: MockerFixture,
        addrs: dict[str, list[SimpleNamespace]],
        stats: dict[str, SimpleNamespace],
    ) -> None:
        _ = mocker.patch("rfarm.pool._network.psutil.net_if_addrs", return_value=addrs)
        _ = mocker.patch("rfarm.pool._network.psutil.net_if_stats", return_value=stats)

    def test_prefers_non_loopback(self, mocker: MockerFixture) -> None:
        self._patch(
            mocker,
            {
                "lo": [_addr(socket.AF_INET, "127.0.0.1")],
                "eth0": [
                    _addr(socket.AF_INET6, "fe80::1"),
                    _addr(socket.AF_INET, "10.0.0.5"),
                ],
            },
            {"lo": _stats(isup=True), "eth0": _stats(isup=True)},
        )

        assert get_local_ip() == "10.0.0.5"

    def test_skips_interfaces_that_are_down(self, mocker: MockerFixture) -> None:
        self._patch(
            mocker,
            {
                "eth0": [_addr(socket.AF_INET, "10.0.0.5")],
                "eth1": [_addr(socket.AF_INET, "10.0.1.5")],
            },
            {"eth0": _stats(isup=False), "eth1": _stats(isup=True)},
        )

        assert get_local_ip() == "10.0.1.5"

    def test_falls_back_to_loopback(self, mocker: MockerFixture) -> None:
        self._patch(
            mocker,
            {"lo": [_addr(socket.AF_INET, "127.0.0.1")]},
            {"lo": _stats(isup=True)},
        )

        assert get_local_ip() == "127.0.0.1"

    def test_none_when_nothing_qualifies(self, mocker: MockerFixture) -> None:
        self._patch(
            mocker,
            {
                "eth0": [_addr(socket.AF_INET6, "fe80::1")],
                "eth1": [_addr(socket.AF_INET, "10.0.0.5")],
            },
            {"eth0": _stats(isup=True)},
        )

        assert get_local_ip() is None
