"""Tests for DependencySetsPhase."""
from __future__ import annotations

import pytest

from assemblykit.errors import DependencyResolutionError
from assemblykit.model.descriptor import Assembly, DependencySet
from assemblykit.phases.dependency_sets import DependencySetsPhase


class TestDependencySetsPhase:
    """Test dependency resolution and placement."""

    def test_places_resolved_dependencies(self, writer, make_project, make_artifact, make_config):
        """Test placement with the default resolver."""
        direct = make_artifact("direct")
        transitive = make_artifact("transitive", dependency_trail=("org.example:direct:jar:1.0",))
        project = make_project(dependencies=[direct, transitive])
        assembly = Assembly(
            id="test",
            dependency_sets=[
                DependencySet(output_directory="lib", use_project_artifact=False),
                DependencySet(
                    output_directory="direct", use_project_artifact=False, use_transitive_dependencies=False
                ),
            ],
        )
        DependencySetsPhase().execute(assembly, writer, make_config(project))
        assert writer.names() == ["direct/direct-1.0.jar", "lib/direct-1.0.jar", "lib/transitive-1.0.jar"]

    def test_resolver_called_once(self, writer, make_artifact, make_config, mocker):
        """Test that all sets are resolved in one call."""
        sets = [DependencySet(output_directory="a", use_project_artifact=False)]
        resolver = mocker.MagicMock()
        resolver.resolve.return_value = {sets[0]: [make_artifact("x")]}
        config = make_config(resolver=resolver)
        DependencySetsPhase().execute(Assembly(id="test", dependency_sets=sets), writer, config)
        resolver.resolve.assert_called_once_with(config.project, sets)
        assert writer.names() == ["a/x-1.0.jar"]

    def test_no_sets_no_resolution(self, writer, make_config, mocker):
        """Test that nothing is resolved without dependency-sets."""
        resolver = mocker.MagicMock()
        DependencySetsPhase().execute(Assembly(id="test"), writer, make_config(resolver=resolver))
        resolver.resolve.assert_not_called()

    def test_resolution_error_propagates(self, writer, make_config, mocker):
        """Test that resolution failures are not wrapped."""
        resolver = mocker.MagicMock()
        resolver.resolve.side_effect = DependencyResolutionError("offline")
        assembly = Assembly(id="test", dependency_sets=[DependencySet()])
        with pytest.raises(DependencyResolutionError, match="offline"):
            DependencySetsPhase().execute(assembly, writer, make_config(resolver=resolver))
