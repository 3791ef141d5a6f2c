# -*- coding: utf-8 -*-
"""测试公共夹具"""

import pytest


@pytest.fixture
def account_payload():
    """GET /v2/account 的典型响应体"""
    return {
        'account': {
            'droplet_limit': 25,
            'floating_ip_limit': 3,
            'email': 'sammy@digitalocean.com',
            'uuid': 'b6fr89dbf6d9156cace5f3c78dc9851d957381ef',
            'email_verified': True,
            'status': 'active',
            'status_message': '',
        }
    }
