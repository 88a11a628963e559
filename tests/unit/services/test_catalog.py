"""ComponentCatalogのユニットテスト。"""

from pathlib import Path

import pytest

from infrapatterns.models.errors import ComponentCatalogError
from infrapatterns.services.catalog import ComponentCatalog


class TestComponentCatalog:
    def test_get_component(self, catalog: ComponentCatalog) -> None:
        component = catalog.get_component("generic-compute")
        assert component is not None
        assert component.category == "compute"
        assert component.supports("gcp") is True

    def test_unknown_component(self, catalog: ComponentCatalog) -> None:
        assert catalog.get_component("unknown") is None

    def test_list_by_category(self, catalog: ComponentCatalog) -> None:
        ids = [c.id for c in catalog.list_components(category="network")]
        assert "generic-vpc" in ids
        assert "generic-compute" not in ids

    def test_list_by_provider(self, catalog: ComponentCatalog) -> None:
        all_ids = {c.id for c in catalog.list_components()}
        gcp_ids = {c.id for c in catalog.list_components(provider="gcp")}
        assert all_ids - gcp_ids == {"generic-cdn"}

    def test_find_alternatives(self, catalog: ComponentCatalog) -> None:
        alternatives = catalog.find_alternatives("generic-cdn", "gcp")
        assert "generic-load-balancer" in alternatives
        assert "generic-cdn" not in alternatives
        assert catalog.find_alternatives("unknown", "gcp") == []

    def test_missing_catalog_file(self, tmp_path: Path) -> None:
        catalog = ComponentCatalog(config_dir=tmp_path)
        with pytest.raises(ComponentCatalogError):
            catalog.get_component("generic-compute")

    def test_custom_catalog(self, tmp_path: Path) -> None:
        (tmp_path / "components.yaml").write_text(
            "components:\n"
            "  - id: my-queue\n"
            "    name: Queue\n"
            "    category: integration\n"
            "    provider_mappings:\n"
            "      aws: {name: Amazon SQS}\n",
            encoding="utf-8",
        )
        catalog = ComponentCatalog(config_dir=tmp_path)
        component = catalog.get_component("my-queue")
        assert component is not None
        assert component.supports("aws") is True
        assert component.supports("azure") is False
