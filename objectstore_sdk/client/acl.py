# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Container access control lists.

Containers carry two ACL headers, ``X-Container-Read`` and
``X-Container-Write``, each a comma separated list of rules:

- ``.r:<host>``: referrer (host) rule, read only. ``.r:*`` allows anyone.
- ``.rlistings``: allows listing the container, read only.
- ``<account>`` or ``<account>:<user>``: grants an account or one of its
  users, valid for read and write.

Rules are additive: a request matching any rule is granted that permission.
No precedence exists between rules, so conflicting rules are resolved by
whatever the store does with the union.

Example:
    acl = ACL()
    acl.add_account(ACL.READ_WRITE, 'admin', 'alice')
    acl.add_referrer(ACL.READ, '.example.com')
    acl.allow_listings()
    store.create_container('docs', acl)
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Union


@dataclass
class AclRule:
    """A single ACL rule. Exactly one of host, rlistings or account is set."""
    mask: int
    host: Optional[str] = None
    rlistings: bool = False
    account: Optional[str] = None
    user: Union[str, List[str], None] = None


class ACL:
    """An ordered set of access rules for a container."""

    READ = 1
    WRITE = 2
    READ_WRITE = 3

    HEADER_READ = 'X-Container-Read'
    HEADER_WRITE = 'X-Container-Write'

    _RULE_PATTERN = re.compile(
        r'^\s*(\.r:([a-zA-Z0-9\*\-\.]+)|\.(rlistings)|([a-zA-Z0-9]+)(:([a-zA-Z0-9]+))?)\s*$'
    )

    def __init__(self):
        self._rules: List[AclRule] = []

    @classmethod
    def make_public(cls) -> 'ACL':
        """Anyone may read objects and list the container."""
        acl = cls()
        acl.add_referrer(cls.READ)
        acl.allow_listings()
        return acl

    @classmethod
    def make_non_public(cls) -> 'ACL':
        """An ACL with no rules; only the owning account has access."""
        return cls()

    make_private = make_non_public

    @classmethod
    def new_from_headers(cls, headers) -> 'ACL':
        """
        Build an ACL from container response headers.

        Args:
            headers (Mapping[str, str]): Response headers; names are matched
                case-insensitively

        Returns:
            ACL: The parsed ACL. Malformed rules are skipped.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        acl = cls()
        for perm, header in ((cls.READ, cls.HEADER_READ), (cls.WRITE, cls.HEADER_WRITE)):
            value = lowered.get(header.lower())
            if not value:
                continue
            for text in value.split(','):
                rule = cls.parse_rule(perm, text)
                if rule is not None:
                    acl._rules.append(rule)
        return acl

    @classmethod
    def parse_rule(cls, perm: int, rule: str) -> Optional[AclRule]:
        """
        Parse one rule string.

        Args:
            perm (int): Permission mask the rule was found under
            rule (str): Rule text, e.g. ``.r:*`` or ``account:user``

        Returns:
            AclRule or None: None if the text matches no rule grammar
        """
        match = cls._RULE_PATTERN.match(rule)
        if not match:
            return None
        if match.group(2):
            return AclRule(mask=perm, host=match.group(2))
        if match.group(3):
            return AclRule(mask=perm, rlistings=True)
        return AclRule(mask=perm, account=match.group(4), user=match.group(6))

    def add_account(self, perm: int, account: str, user: Union[str, List[str], None] = None) -> 'ACL':
        """
        Grant an account, or users of an account, READ and/or WRITE.

        Args:
            perm (int): ACL.READ, ACL.WRITE or ACL.READ_WRITE
            account (str): Account name
            user (str or list, optional): One user or a list of users
        """
        self._rules.append(AclRule(mask=perm, account=account, user=user))
        return self

    def add_referrer(self, perm: int, host: str = '*') -> 'ACL':
        """
        Allow requests referred from a host pattern.

        Referrer rules only apply to READ; a WRITE bit is accepted but never
        serialized.
        """
        self._rules.append(AclRule(mask=perm, host=host))
        return self

    def allow_listings(self) -> 'ACL':
        """Allow anyone with read access to list the container."""
        self._rules.append(AclRule(mask=self.READ, rlistings=True))
        return self

    def rules(self) -> List[AclRule]:
        return list(self._rules)

    def headers(self) -> Dict[str, str]:
        """
        Serialize the rules into ACL headers.

        Returns:
            dict: ``X-Container-Read`` and/or ``X-Container-Write`` values.
                A permission without rules gets no entry.
        """
        readers = []
        writers = []
        for rule in self._rules:
            if rule.mask & self.READ:
                text = self._rule_to_string(self.READ, rule)
                if text:
                    readers.append(text)
            if rule.mask & self.WRITE:
                text = self._rule_to_string(self.WRITE, rule)
                if text:
                    writers.append(text)

        headers = {}
        if readers:
            headers[self.HEADER_READ] = ','.join(readers)
        if writers:
            headers[self.HEADER_WRITE] = ','.join(writers)
        return headers

    def _rule_to_string(self, perm: int, rule: AclRule) -> Optional[str]:
        if perm & self.READ:
            if rule.host:
                return f'.r:{rule.host}'
            if rule.rlistings:
                return '.rlistings'

        if rule.account:
            if not rule.user:
                return rule.account
            if isinstance(rule.user, (list, tuple)):
                return ','.join(f'{rule.account}:{user}' for user in rule.user)
            return f'{rule.account}:{rule.user}'
        return None

    def is_public(self) -> bool:
        """True if anyone may read objects and list the container."""
        all_hosts = any(rule.host == '*' and rule.mask & self.READ for rule in self._rules)
        listings = any(rule.rlistings for rule in self._rules)
        return all_hosts and listings

    def is_non_public(self) -> bool:
        """
        True if the ACL has no rules at all.

        This is not the negation of :meth:`is_public`: an ACL granting
        another account access is neither public nor non-public.
        """
        return not self._rules

    is_private = is_non_public

    def file_mode(self) -> int:
        """Permission bits reported for entries governed by this ACL."""
        return 0o775 if self.is_public() else 0o770

    def __str__(self):
        lines = []
        for rule in self._rules:
            fields = {'mask': rule.mask}
            if rule.host:
                fields['host'] = rule.host
            if rule.rlistings:
                fields['rlistings'] = True
            if rule.account:
                fields['account'] = rule.account
            if rule.user:
                fields['user'] = rule.user
            lines.append('\t'.join(f'{k}: {v}' for k, v in fields.items()))
        return '\n'.join(lines)

    def __repr__(self):
        return f'ACL({self.headers()!r})'
