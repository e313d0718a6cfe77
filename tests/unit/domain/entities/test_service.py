"""Unit tests for Service entity."""

from src.domain.entities.service import (
    ServiceMetadata,
    ServiceTier,
)
from src.domain.entities.user_context import UserContext


class TestServiceTier:
    """Test cases for ServiceTier enum."""

    def test_tier_values(self):
        """Test that all expected tiers exist."""
        assert ServiceTier.CRITICAL.value == "TIER-1"
        assert ServiceTier.IMPORTANT.value == "TIER-2"
        assert ServiceTier.STANDARD.value == "TIER-3"
        assert ServiceTier.values() == ["TIER-1", "TIER-2", "TIER-3"]

    def test_tier_is_string_enum(self):
        """Test that ServiceTier compares equal to its literal."""
        assert isinstance(ServiceTier.CRITICAL, str)
        assert ServiceTier.CRITICAL == "TIER-1"


class TestServiceMetadata:
    """Test cases for ServiceMetadata."""

    def test_known_tier_literal_is_coerced(self):
        """Test that a known tier string becomes a ServiceTier."""
        metadata = ServiceMetadata(name="auth-api", tier="TIER-2")

        assert metadata.tier is ServiceTier.IMPORTANT

    def test_unknown_tier_literal_is_kept(self):
        """Test that an unknown tier string is kept for the validator to reject."""
        metadata = ServiceMetadata(name="auth-api", tier="TIER-9")

        assert metadata.tier == "TIER-9"
        assert not isinstance(metadata.tier, ServiceTier)

    def test_defaults(self):
        """Test that a new descriptor is unversioned and unaudited."""
        metadata = ServiceMetadata(name="auth-api")

        assert metadata.tier is ServiceTier.STANDARD
        assert metadata.version == 0
        assert metadata.created_at is None
        assert metadata.created_by == ""


class TestService:
    """Test cases for the Service aggregate."""

    def test_environments_empty_without_kubernetes(self, make_service):
        """Test that a service without Kubernetes config has no environments."""
        service = make_service()

        assert service.environments == []
        assert service.get_environment("production") is None
        assert service.get_deployment("production", "auth-api") is None

    def test_environment_and_deployment_lookup_is_case_insensitive(
        self, make_service, make_environment
    ):
        """Test environment and deployment lookup ignore case."""
        service = make_service(
            environments=[make_environment("Production", [("Auth-API", 3)])]
        )

        assert service.get_environment("production").name == "Production"
        assert service.get_deployment("PRODUCTION", "auth-api").replicas == 3
        assert service.get_deployment("production", "missing") is None

    def test_is_high_priority(self, make_service):
        """Test that TIER-1 and TIER-2 are high priority."""
        assert make_service(tier=ServiceTier.CRITICAL).is_high_priority()
        assert make_service(tier=ServiceTier.IMPORTANT).is_high_priority()
        assert not make_service(tier=ServiceTier.STANDARD).is_high_priority()

    def test_can_be_modified_by_owning_team(self, make_service):
        """Test that ownership matching ignores case."""
        service = make_service(team="auth-squad")

        assert service.can_be_modified_by(["Auth-Squad"])
        assert not service.can_be_modified_by(["other-squad"])
        assert not service.can_be_modified_by([])

    def test_has_dependency(self, make_service):
        """Test dependency lookup by name."""
        service = make_service(dependencies=["user-db", "cache"])

        assert service.has_dependency("USER-DB")
        assert not service.has_dependency("billing")

    def test_name_property(self, make_service):
        """Test that name mirrors metadata.name."""
        assert make_service(name="billing-api").name == "billing-api"


class TestUserContext:
    """Test cases for UserContext."""

    def test_team_membership(self):
        """Test case-insensitive team membership checks."""
        user = UserContext(username="u", teams=["auth-squad", "platform"])

        assert user.has_team("AUTH-SQUAD")
        assert not user.has_team("billing")
        assert user.has_any_team(["billing", "platform"])
        assert not user.has_any_team([])
