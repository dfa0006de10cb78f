import pytest

from ithub.app.validation import get_ip_range, is_valid_ip, is_valid_subnet_mask

@pytest.mark.parametrize('ip', ['192.168.0.1', '10.0.0.0', '255.255.255.255', '0.0.0.0'])
def test_valid_ip(ip):
    assert is_valid_ip(ip)

@pytest.mark.parametrize('ip', ['256.1.1.1', '10.0.0', '10.0.0.1.5', 'a.b.c.d', '', ' 10.0.0.1', None, 167772161])
def test_invalid_ip(ip):
    assert not is_valid_ip(ip)

def test_subnet_masks():
    assert is_valid_subnet_mask('255.255.255.0')
    assert is_valid_subnet_mask('255.255.240.0')
    assert is_valid_subnet_mask('0.0.0.0')
    assert not is_valid_subnet_mask('255.0.255.0')
    assert not is_valid_subnet_mask('255.255.255.1')
    assert not is_valid_subnet_mask('300.255.255.0')

def test_ip_range():
    assert get_ip_range('192.168.1.77', '255.255.255.0') == ('192.168.1.0', '192.168.1.255')
    assert get_ip_range('10.20.30.40', '255.255.240.0') == ('10.20.16.0', '10.20.31.255')
    assert get_ip_range('10.0.0.1', '255.0.255.0') is None
    assert get_ip_range('10.0.0', '255.255.255.0') is None
