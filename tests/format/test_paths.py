"""
Unit tests for output path formatting.

Tests cover:
- Output directory fallback, prefixing and normalization
- Variable groups (final name, module, artifact, project, properties, env)
- File name mappings and ${dashClassifier?}
- Relative reference handling
"""
from __future__ import annotations

import logging

import pytest

from assemblykit.format.paths import (
    Interpolator,
    evaluate_file_name_mapping,
    fix_relative_refs,
    get_distribution_name,
    get_output_directory,
    warn_for_platform_specifics,
)
from assemblykit.model.descriptor import DEFAULT_OUTPUT_FILE_NAME_MAPPING, Assembly
from assemblykit.model.project import Artifact, ModuleProject


class TestInterpolator:
    """Test expression lookup across ordered sources."""

    def test_first_source_wins(self):
        """Test that earlier sources shadow later ones."""
        interp = Interpolator({"a": "first"}.get, {"a": "second", "b": "other"}.get)
        assert interp.interpolate("${a}-${b}") == "first-other"

    def test_unknown_expression_kept(self):
        """Test that unresolved expressions stay verbatim."""
        assert Interpolator({}.get).interpolate("x/${missing}/y") == "x/${missing}/y"

    def test_nested_values_resolved(self):
        """Test that values containing expressions are interpolated again."""
        interp = Interpolator({"outer": "${inner}-x", "inner": "v"}.get)
        assert interp.interpolate("${outer}") == "v-x"

    def test_self_reference_terminates(self):
        """Test that a self-referencing value does not recurse forever."""
        interp = Interpolator({"loop": "${loop}"}.get)
        assert interp.interpolate("${loop}") == "${loop}"

    def test_none_sources_ignored(self):
        """Test that absent sources are skipped."""
        assert Interpolator(None, {"a": "1"}.get).interpolate("${a}") == "1"


class TestGetOutputDirectory:
    """Test destination directory computation."""

    def test_none_falls_back_to_final_name(self):
        """Test that a missing template uses the final name."""
        assert get_output_directory(None, "app-1.0", None) == "app-1.0/"

    def test_none_without_final_name_is_root(self):
        """Test that no template and no final name yields the archive root."""
        assert get_output_directory(None, None, None) == ""

    def test_empty_stays_empty(self):
        """Test that an empty template is the archive root."""
        assert get_output_directory("", "app-1.0", None) == ""

    def test_final_name_expression(self):
        """Test ${finalName} substitution."""
        assert get_output_directory("${finalName}", "app-1.0", None) == "app-1.0/"

    def test_leading_slash_removed(self):
        """Test that absolute-looking directories become archive-relative."""
        assert get_output_directory("/lib", None, None) == "lib/"

    def test_trailing_slash_not_doubled(self):
        """Test that an existing trailing slash is kept as is."""
        assert get_output_directory("lib/", None, None) == "lib/"

    def test_backslashes_converted(self):
        """Test that backslashes become forward slashes."""
        assert get_output_directory("a\\b", None, None) == "a/b/"

    def test_dot_segments_collapsed(self):
        """Test that ./ and segment/../ pairs are normalized away."""
        assert get_output_directory("./lib/../bin", None, None) == "bin/"

    def test_leading_parent_reference_dropped(self):
        """Test that a leading ../ cannot escape the archive root."""
        assert get_output_directory("../escape", None, None) == "escape/"

    def test_module_group(self):
        """Test ${module.*} lookups against the module project."""
        module = ModuleProject("org.example", "core", "2.0")
        result = get_output_directory(
            "${module.artifactId}-${module.version}/lib", None, None, module_project=module
        )
        assert result == "core-2.0/lib/"

    def test_artifact_group(self):
        """Test ${artifact.*} lookups against the artifact's project."""
        project = ModuleProject("org.example", "dep", "3.1")
        result = get_output_directory(
            "deps/${artifact.groupIdPath}", None, None, artifact_project=project
        )
        assert result == "deps/org/example/"

    def test_project_properties(self, make_config, make_project):
        """Test owning-project properties, prefixed and bare."""
        config = make_config(make_project(properties={"dist": "out"}))
        assert get_output_directory("${project.properties.dist}", None, config) == "out/"
        assert get_output_directory("${dist}", None, config) == "out/"
        assert get_output_directory("${project.artifactId}", None, config) == "app/"

    def test_execution_properties_shadow_project(self, make_config, make_project):
        """Test that additional properties win over project properties."""
        config = make_config(
            make_project(properties={"dist": "from-project"}),
            additional_properties={"dist": "from-execution"},
        )
        assert get_output_directory("${dist}", None, config) == "from-execution/"

    def test_env_group(self, monkeypatch):
        """Test ${env.*} lookups."""
        monkeypatch.setenv("ASSEMBLYKIT_TEST_DIR", "envdir")
        assert get_output_directory("${env.ASSEMBLYKIT_TEST_DIR}", None, None) == "envdir/"

    def test_unresolved_expression_kept(self):
        """Test that unknown expressions pass through."""
        assert get_output_directory("${nope}/x", None, None) == "${nope}/x/"


class TestEvaluateFileNameMapping:
    """Test artifact file name mappings."""

    def test_default_mapping(self):
        """Test the default artifactId-version.extension mapping."""
        artifact = Artifact("org.example", "core", "1.0")
        assert evaluate_file_name_mapping(DEFAULT_OUTPUT_FILE_NAME_MAPPING, artifact, None, None, None) == (
            "core-1.0.jar"
        )

    def test_dash_classifier_present(self):
        """Test that ${dashClassifier?} expands to -classifier."""
        artifact = Artifact("org.example", "core", "1.0", classifier="tests")
        assert evaluate_file_name_mapping(DEFAULT_OUTPUT_FILE_NAME_MAPPING, artifact, None, None, None) == (
            "core-1.0-tests.jar"
        )

    def test_type_extension_mapping(self):
        """Test that types map to their packaged extension."""
        artifact = Artifact("org.example", "core", "1.0", type="test-jar", classifier="tests")
        assert evaluate_file_name_mapping("${artifact.extension}", artifact, None, None, None) == "jar"

    def test_module_artifact_group(self):
        """Test ${module.*} lookups against the module artifact."""
        artifact = Artifact("org.example", "dep", "1.0")
        module_artifact = Artifact("org.example", "mod", "2.0")
        result = evaluate_file_name_mapping(
            "${module.artifactId}/${artifact.artifactId}.${artifact.extension}",
            artifact,
            None,
            module_artifact,
            None,
        )
        assert result == "mod/dep.jar"

    def test_main_project_group(self, make_config):
        """Test lookups falling through to the owning project."""
        config = make_config()
        artifact = Artifact("org.example", "dep", "1.0")
        result = evaluate_file_name_mapping(
            "${project.artifactId}-${artifact.artifactId}", artifact, config.project, None, config
        )
        assert result == "app-dep"

    def test_unknown_expression_kept(self):
        """Test that unknown expressions pass through."""
        artifact = Artifact("org.example", "core", "1.0")
        assert evaluate_file_name_mapping("${foo}.jar", artifact, None, None, None) == "${foo}.jar"


class TestFixRelativeRefs:
    """Test relative reference normalization."""

    @pytest.mark.parametrize(
        "src,expected",
        [
            ("some/../path/", "path/"),
            ("some/./path/", "some/path/"),
            ("../path/", "path/"),
            ("./path", "path"),
            ("a/b/../../c", "c"),
            ("plain/path", "plain/path"),
        ],
    )
    def test_normalization(self, src, expected):
        """Test dot segments are removed or collapsed."""
        assert fix_relative_refs(src) == expected


class TestDistributionName:
    """Test archive base names."""

    def test_appends_id(self, make_config):
        """Test that the assembly id is appended by default."""
        assert get_distribution_name(Assembly(id="bin"), make_config()) == "app-1.0-bin"

    def test_without_id(self, make_config):
        """Test that append_assembly_id=False keeps the final name."""
        config = make_config(append_assembly_id=False)
        assert get_distribution_name(Assembly(id="bin"), config) == "app-1.0"


class TestPlatformWarnings:
    """Test non-portable path warnings."""

    def test_drive_letter_reported(self, caplog):
        """Test that a drive letter is reported."""
        with caplog.at_level(logging.WARNING):
            warn_for_platform_specifics("C:\\data")
        assert "Windows-specific" in caplog.text

    def test_relative_path_silent(self, caplog):
        """Test that portable paths log nothing."""
        with caplog.at_level(logging.WARNING):
            warn_for_platform_specifics("src/main")
        assert caplog.text == ""
