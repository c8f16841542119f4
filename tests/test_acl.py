import pytest

from objectstore_sdk.client.acl import ACL


def test_empty_acl_is_non_public():
    acl = ACL()
    assert acl.is_non_public()
    assert acl.is_private()
    assert not acl.is_public()
    assert acl.headers() == {}


def test_make_public_round_trip():
    headers = ACL.make_public().headers()
    assert headers == {'X-Container-Read': '.r:*,.rlistings'}

    parsed = ACL.new_from_headers(headers)
    assert parsed.is_public()
    assert not parsed.is_non_public()


def test_make_private_has_no_rules():
    acl = ACL.make_private()
    assert acl.rules() == []
    assert acl.headers() == {}


def test_account_rules_serialize_for_read_and_write():
    acl = ACL()
    acl.add_account(ACL.READ_WRITE, 'admin', 'alice')
    acl.add_account(ACL.READ, 'ops')
    acl.add_account(ACL.WRITE, 'team', ['bob', 'carol'])

    headers = acl.headers()
    assert headers['X-Container-Read'] == 'admin:alice,ops'
    assert headers['X-Container-Write'] == 'admin:alice,team:bob,team:carol'


def test_referrer_rules_are_read_only():
    acl = ACL().add_referrer(ACL.READ_WRITE, '.example.com')
    assert acl.headers() == {'X-Container-Read': '.r:.example.com'}


def test_account_grant_is_neither_public_nor_non_public():
    acl = ACL().add_account(ACL.READ, 'partner')
    assert not acl.is_public()
    assert not acl.is_non_public()


def test_referrer_without_listings_is_not_public():
    acl = ACL().add_referrer(ACL.READ)
    assert not acl.is_public()


def test_new_from_headers_is_case_insensitive():
    acl = ACL.new_from_headers({
        'x-container-read': '.r:*, .rlistings, admin:alice',
        'X-CONTAINER-WRITE': 'admin',
    })
    rules = acl.rules()
    assert len(rules) == 4
    assert rules[0].host == '*'
    assert rules[1].rlistings
    assert (rules[2].account, rules[2].user, rules[2].mask) == ('admin', 'alice', ACL.READ)
    assert (rules[3].account, rules[3].user, rules[3].mask) == ('admin', None, ACL.WRITE)


@pytest.mark.parametrize("text", ["", "a:b:c", ".r:", "bad user", ".unknown"])
def test_malformed_rules_are_skipped(text):
    assert ACL.parse_rule(ACL.READ, text) is None
    assert ACL.new_from_headers({'X-Container-Read': text}).rules() == []


def test_file_mode_follows_public_state():
    assert ACL.make_public().file_mode() == 0o775
    assert ACL.make_private().file_mode() == 0o770
    assert ACL().add_account(ACL.READ, 'partner').file_mode() == 0o770


def test_str_lists_rule_fields():
    text = str(ACL.make_public())
    lines = text.split('\n')
    assert lines[0] == 'mask: 1\thost: *'
    assert lines[1] == 'mask: 1\trlistings: True'
