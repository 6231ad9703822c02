"""Tests for identity resolvers."""

from unittest.mock import MagicMock

import pytest

from polaris.identity import StaticIdentityResolver, SupabaseIdentityResolver
from polaris.protocols import IdentityResolver


class TestStaticIdentityResolver:
    @pytest.mark.asyncio
    async def test_returns_configured_owner(self):
        assert await StaticIdentityResolver("user-1").get_current_owner_id() == "user-1"

    @pytest.mark.asyncio
    async def test_default_is_anonymous(self):
        resolver = StaticIdentityResolver()
        assert isinstance(resolver, IdentityResolver)
        assert await resolver.get_current_owner_id() is None


class TestSupabaseIdentityResolver:
    """Tests for SupabaseIdentityResolver."""

    @pytest.mark.asyncio
    async def test_signed_in_user(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=MagicMock(id="a1b2"))

        resolver = SupabaseIdentityResolver(client, access_token="jwt")

        assert await resolver.get_current_owner_id() == "a1b2"
        client.auth.get_user.assert_called_once_with("jwt")

    @pytest.mark.asyncio
    async def test_no_user_is_anonymous(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=None)
        assert await SupabaseIdentityResolver(client).get_current_owner_id() is None

    @pytest.mark.asyncio
    async def test_no_session_is_anonymous(self):
        client = MagicMock()
        client.auth.get_user.return_value = None
        assert await SupabaseIdentityResolver(client).get_current_owner_id() is None

    @pytest.mark.asyncio
    async def test_auth_errors_are_anonymous(self):
        """Auth failures resolve to anonymous instead of raising."""
        client = MagicMock()
        client.auth.get_user.side_effect = RuntimeError("invalid JWT")
        assert await SupabaseIdentityResolver(client).get_current_owner_id() is None
