"""パターン・ワークスペースモデルのユニットテスト。"""

from infrapatterns.models.pattern import ComponentReference, ComponentRelationship, InfrastructurePattern
from infrapatterns.models.workspace import DeploymentOptions, WorkspaceComponent, WorkspaceState


class TestInfrastructurePattern:
    def test_defaults(self) -> None:
        pattern = InfrastructurePattern(id="p", name="P", description="d", category="web")
        assert pattern.version == "1.0.0"
        assert pattern.status == "draft"
        assert pattern.rating is None
        assert pattern.download_count == 0

    def test_get_component(self) -> None:
        pattern = InfrastructurePattern(
            id="p",
            name="P",
            description="d",
            category="web",
            components=[ComponentReference(component_id="generic-vpc", instance_id="vpc", display_name="VPC")],
        )
        assert pattern.get_component("vpc") is not None
        assert pattern.get_component("missing") is None


class TestComponentRelationship:
    def test_configuration_keeps_extra_keys(self) -> None:
        relationship = ComponentRelationship.model_validate(
            {
                "id": "r1",
                "from_instance_id": "a",
                "to_instance_id": "b",
                "relationship_type": "data-flow",
                "configuration": {"protocols": ["https"], "timeout": 30},
            }
        )
        assert relationship.configuration.bidirectional is False
        assert relationship.configuration.model_dump()["timeout"] == 30


class TestWorkspaceModels:
    def test_component_ids(self) -> None:
        workspace = WorkspaceState(
            id="ws",
            components=[WorkspaceComponent(id="a", type="generic-vpc"), WorkspaceComponent(id="b", type="generic-vpc")],
        )
        assert workspace.component_ids() == {"a", "b"}

    def test_deployment_option_defaults(self) -> None:
        options = DeploymentOptions()
        assert options.preserve_existing is True
        assert options.validation.check_conflicts is True
        assert options.validation.validate_connections is True
        assert options.naming.strategy == "preserve"
