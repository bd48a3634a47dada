from netstack.address import Address
from netstack.tcp_config import FdAdapterConfig, TCPConfig


def test_tcp_config_defaults():
    cfg = TCPConfig()
    assert cfg.rt_timeout == TCPConfig.TIMEOUT_DFLT == 1000
    assert cfg.recv_capacity == TCPConfig.DEFAULT_CAPACITY == 64000
    assert cfg.send_capacity == TCPConfig.DEFAULT_CAPACITY
    assert cfg.isn == 137


def test_tcp_config_override():
    cfg = TCPConfig(rt_timeout=100)
    assert cfg.rt_timeout == 100
    assert cfg.send_capacity == TCPConfig.DEFAULT_CAPACITY


def test_fd_adapter_config_defaults():
    cfg = FdAdapterConfig()
    assert cfg.source == Address("0.0.0.0", 0)
    assert cfg.destination == Address("0.0.0.0", 0)
    assert cfg.loss_rate_dn == 0
    assert cfg.loss_rate_up == 0


def test_fd_adapter_config_instances_independent():
    first = FdAdapterConfig()
    second = FdAdapterConfig()
    first.loss_rate_up = 10
    first.source = Address("10.0.0.1", 80)
    assert second.loss_rate_up == 0
    assert second.source == Address("0.0.0.0", 0)
    assert first != second