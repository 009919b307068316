"""Unit tests for MemberStore

Runs against the sqlite test database from conftest.
"""

import pytest

from salesforce_auth.domain.models import Member
from salesforce_auth.infrastructure.members import MemberStore


@pytest.mark.unit
class TestGetByEmail:
    """Test member lookup by email"""

    @pytest.mark.asyncio
    async def test_exact_match(self, test_db, test_member):
        """Happy path: member with identical email is found"""
        member = await MemberStore(test_db).get_by_email("member@example.com")

        assert member is not None
        assert member.id == test_member.id

    @pytest.mark.asyncio
    async def test_match_is_case_sensitive(self, test_db, test_member):
        """Edge case: a differently cased email is not the same member"""
        assert await MemberStore(test_db).get_by_email("Member@Example.com") is None

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_db, test_member):
        """Bad input: unknown email returns None"""
        assert await MemberStore(test_db).get_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_empty_email(self, test_db, test_member):
        """Bad input: empty email never matches"""
        assert await MemberStore(test_db).get_by_email("") is None


@pytest.mark.unit
class TestRecordLogin:
    """Test SSO login bookkeeping"""

    @pytest.mark.asyncio
    async def test_stamps_login(self, test_db, test_member):
        """Happy path: login time and Salesforce subject are recorded"""
        assert test_member.last_login_at is None

        member = await MemberStore(test_db).record_login(
            test_member, {"user_id": "005000000000001", "email": "member@example.com"}
        )

        assert member.last_login_at is not None
        assert member.sso_provider == "salesforce"
        assert member.sso_subject_id == "005000000000001"

    @pytest.mark.asyncio
    async def test_missing_subject_keeps_previous(self, test_db):
        """Edge case: identity without user_id leaves the stored subject alone"""
        member = Member(email="old@example.com", sso_provider="salesforce", sso_subject_id="005OLD")
        test_db.add(member)
        await test_db.commit()

        member = await MemberStore(test_db).record_login(member, {"email": "old@example.com"})

        assert member.sso_subject_id == "005OLD"
