"""
Tests for the detection service — languages, frameworks, patterns,
build hints, MCP servers and maturity.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from aiops.core.services.detection import (
    DetectionError,
    count_dirs,
    detect_build,
    detect_frameworks,
    detect_go_module,
    detect_languages,
    detect_maturity,
    detect_mcp_servers,
    detect_patterns,
    detect_skills,
    detect_specs,
    find_files,
    scan,
)
from aiops.core.services.targets import COPILOT, CURSOR, WINDSURF


class TestLanguages:
    def test_root_markers(self, project: Path, make_file):
        make_file(project, "go.mod", "module example.com/app\n")
        make_file(project, "requirements.txt", "requests\n")

        langs = detect_languages(project)
        assert [l.name for l in langs] == ["go", "python"]
        assert all(l.entry_dir == "" for l in langs)

    def test_subdirectory_records_entry_dir(self, project: Path, make_file):
        make_file(project, "web/package.json", "{}")

        langs = detect_languages(project)
        assert len(langs) == 1
        assert langs[0].name == "typescript"
        assert langs[0].entry_dir == "web"
        assert langs[0].confidence == "medium"

    def test_root_wins_over_subdirectory(self, project: Path, make_file):
        make_file(project, "go.mod")
        make_file(project, "svc/go.mod")

        langs = detect_languages(project)
        assert len(langs) == 1
        assert langs[0].entry_dir == ""

    def test_each_language_once(self, project: Path, make_file):
        make_file(project, "go.mod")
        make_file(project, "go.sum")
        make_file(project, "package.json", "{}")
        make_file(project, "tsconfig.json", "{}")

        names = [l.name for l in detect_languages(project)]
        assert names == ["go", "typescript"]

    def test_hidden_and_dependency_dirs_ignored(self, project: Path, make_file):
        make_file(project, ".tools/Cargo.toml")
        make_file(project, "node_modules/package.json", "{}")
        make_file(project, "vendor/go.mod")

        assert detect_languages(project) == []


class TestFrameworks:
    def test_nextjs_suppresses_react(self, project: Path, make_file):
        make_file(project, "package.json", json.dumps({
            "dependencies": {"next": "14.0.0", "react": "18.2.0"},
        }))

        names = [f.name for f in detect_frameworks(project)]
        assert "nextjs" in names
        assert "react" not in names

    def test_react_without_next(self, project: Path, make_file):
        make_file(project, "package.json", '{"dependencies": {"react": "18"}}')

        fws = detect_frameworks(project)
        assert [f.name for f in fws] == ["react"]
        assert fws[0].dir == "."
        assert fws[0].language == "typescript"

    def test_same_framework_deduplicated_per_module(self, project: Path, make_file):
        make_file(project, "go.mod", "require github.com/go-chi/chi/v5 v5.0.0\n")

        fws = detect_frameworks(project)
        assert [f.name for f in fws] == ["chi"]

    def test_same_framework_in_two_modules(self, project: Path, make_file):
        make_file(project, "svc-a/go.mod", "require github.com/gin-gonic/gin v1\n")
        make_file(project, "svc-b/go.mod", "require github.com/gin-gonic/gin v1\n")

        fws = detect_frameworks(project)
        assert [(f.name, f.dir) for f in fws] == [("gin", "svc-a"), ("gin", "svc-b")]

    def test_depth_bound(self, project: Path, make_file):
        make_file(project, "a/b/requirements.txt", "fastapi\n")
        make_file(project, "a/b/c/requirements.txt", "django\n")

        fws = detect_frameworks(project)
        assert [(f.name, f.dir) for f in fws] == [("fastapi", "a/b")]

    def test_dependency_and_hidden_dirs_skipped(self, project: Path, make_file):
        make_file(project, "node_modules/next/package.json", '{"name": "next"}')
        make_file(project, ".cache/requirements.txt", "flask\n")

        assert detect_frameworks(project) == []

    def test_python_frameworks(self, project: Path, make_file):
        make_file(project, "pyproject.toml", 'dependencies = ["fastapi", "django"]\n')

        names = [f.name for f in detect_frameworks(project)]
        assert names == ["django", "fastapi"]


class TestBuild:
    def test_go_hints(self, project: Path, make_file):
        make_file(project, "go.mod")
        langs = detect_languages(project)

        build = detect_build(project, langs, [])
        assert build.commands == ["go build ./..."]
        assert build.test_commands == ["go test ./..."]
        assert "// Code generated" in build.generated_file_markers

    def test_java_maven_vs_gradle(self, project: Path, make_file):
        make_file(project, "pom.xml")
        build = detect_build(project, detect_languages(project), [])
        assert build.commands == ["mvn compile"]

        other = project.parent / "gradle-project"
        make_file(other, "build.gradle")
        build = detect_build(other, detect_languages(other), [])
        assert build.commands == ["gradle build"]

    def test_nextjs_adds_build_without_duplicates(self, project: Path, make_file):
        make_file(project, "package.json", '{"dependencies": {"next": "14"}}')
        make_file(project, "apps/site/package.json", '{"dependencies": {"next": "14"}}')

        build = detect_build(project, detect_languages(project), detect_frameworks(project))
        assert build.commands == ["npx tsc --noEmit", "npm run build"]

    def test_eventsrc_generate_command(self, project: Path, make_file):
        make_file(project, "go.mod", "require example.com/eventsrc v0.1.0\n")

        build = detect_build(project, detect_languages(project), detect_frameworks(project))
        assert build.generate_commands == ["go run main.go generate-dsl [domain]"]

    def test_no_languages_no_hints(self, project: Path):
        build = detect_build(project, [], [])
        assert build.commands == []
        assert build.test_commands == []


class TestPatterns:
    def test_directory_patterns(self, project: Path):
        (project / "internal" / "domain").mkdir(parents=True)
        (project / "src" / "domain").mkdir(parents=True)
        (project / "pkg" / "eventsrc").mkdir(parents=True)

        assert detect_patterns(project) == ["domain-driven-design", "event-sourcing"]

    def test_directory_pattern_one_level_down(self, project: Path):
        (project / "backend" / "domain").mkdir(parents=True)

        assert detect_patterns(project) == ["domain-driven-design"]

    def test_marker_patterns(self, project: Path, make_file):
        make_file(project, "pnpm-workspace.yaml")
        make_file(project, ".github/workflows/ci.yml")
        make_file(project, ".gitlab-ci.yml")

        assert detect_patterns(project) == ["monorepo", "github-actions", "gitlab-ci"]

    def test_containerized_by_nested_dockerfile(self, project: Path, make_file):
        make_file(project, "services/api/Dockerfile")

        assert detect_patterns(project) == ["containerized"]

    def test_dockerfile_too_deep(self, project: Path, make_file):
        make_file(project, "a/b/c/Dockerfile")

        assert detect_patterns(project) == []

    def test_mcp_server_directory(self, project: Path, make_file):
        (project / "tools" / "mcp-server").mkdir(parents=True)
        assert detect_patterns(project) == ["mcp-server"]

    def test_mcp_server_file_is_not_a_pattern(self, project: Path, make_file):
        make_file(project, "mcp-server", "not a directory")
        assert detect_patterns(project) == []


class TestGoModule:
    def test_root_module_wins(self, project: Path, make_file):
        make_file(project, "go.mod", "module github.com/acme/app\n\ngo 1.22\n")
        make_file(project, "tools/go.mod", "module github.com/acme/tools\n")

        assert detect_go_module(project) == "github.com/acme/app"

    def test_nested_module(self, project: Path, make_file):
        make_file(project, "backend/go.mod", "// comment\nmodule github.com/acme/backend\n")

        assert detect_go_module(project) == "github.com/acme/backend"

    def test_absent(self, project: Path):
        assert detect_go_module(project) == ""

    def test_find_files_shallowest_first(self, project: Path, make_file):
        make_file(project, "b/x/go.mod")
        make_file(project, "a/go.mod")

        found = find_files(project, "go.mod", 2)
        assert [p.relative_to(project).as_posix() for p in found] == ["a/go.mod", "b/x/go.mod"]


class TestMCPServers:
    def test_first_location_wins(self, project: Path, home: Path, make_file):
        make_file(home, ".codeium/windsurf/mcp_config.json", json.dumps({
            "mcpServers": {
                "github": {"command": "npx", "args": ["-y", "server-github"]},
                "remote": {"url": "https://mcp.example.com/sse"},
            },
        }))
        make_file(project, ".cursor/mcp.json", json.dumps({
            "mcpServers": {
                "github": {"command": "docker"},
                "postgres": {"command": "pg-mcp"},
            },
        }))

        servers = detect_mcp_servers(project, home=home)
        by_name = {s.name: s for s in servers}

        assert [s.name for s in servers] == ["github", "remote", "postgres"]
        assert by_name["github"].source == "windsurf"
        assert by_name["github"].command == "npx"
        assert by_name["remote"].command == "http"
        assert by_name["postgres"].source == "cursor"

    def test_malformed_config_skipped(self, project: Path, home: Path, make_file):
        make_file(home, ".cursor/mcp.json", "{not json")
        make_file(project, "mcp.json", '{"mcpServers": {"local": {"command": "run"}}}')

        servers = detect_mcp_servers(project, home=home)
        assert [(s.name, s.source) for s in servers] == [("local", "project")]

    def test_missing_section(self, project: Path, home: Path, make_file):
        make_file(project, "mcp.json", '{"servers": {}}')

        assert detect_mcp_servers(project, home=home) == []


class TestMaturity:
    def _sources(self, root: Path, count: int, make_file) -> None:
        for i in range(count):
            make_file(root, f"src/mod{i}.py", "x = 1\n")

    def test_nine_sources_is_bootstrap(self, project: Path, make_file):
        self._sources(project, 9, make_file)
        assert detect_maturity(project) == "bootstrap"

    def test_ten_sources_is_active(self, project: Path, make_file):
        self._sources(project, 10, make_file)
        assert detect_maturity(project) == "active"

    def test_tests_alone_leave_bootstrap(self, project: Path, make_file):
        make_file(project, "app_test.go")
        assert detect_maturity(project) == "active"

    def test_ci_tests_and_six_dirs_is_mature(self, project: Path, make_file):
        make_file(project, ".github/workflows/ci.yml")
        make_file(project, "tests/test_app.py")
        make_file(project, "src/pkg/app.py")
        (project / "docs").mkdir()

        assert count_dirs(project, 2) == 6
        assert detect_maturity(project) == "mature"

    def test_five_dirs_is_active(self, project: Path, make_file):
        make_file(project, ".github/workflows/ci.yml")
        make_file(project, "tests/test_app.py")
        make_file(project, "src/app.py")
        (project / "docs").mkdir()

        assert count_dirs(project, 2) == 5
        assert detect_maturity(project) == "active"

    def test_dependency_dirs_not_counted(self, project: Path, make_file):
        for i in range(20):
            make_file(project, f"node_modules/pkg{i}/index.js")
        assert detect_maturity(project) == "bootstrap"


class TestScan:
    def test_full_scan(self, project: Path, home: Path, make_file):
        make_file(project, "go.mod", "module github.com/acme/app\nrequire github.com/gin-gonic/gin v1\n")
        (project / "internal" / "domain").mkdir(parents=True)

        stack = scan(project, home=home)

        assert stack.language_names == ["go"]
        assert stack.framework_names == ["gin"]
        assert stack.patterns == ["domain-driven-design"]
        assert stack.go_module == "github.com/acme/app"
        assert stack.mcp_servers == []

    def test_missing_root(self, tmp_path: Path, home: Path):
        with pytest.raises(DetectionError):
            scan(tmp_path / "does-not-exist", home=home)

    def test_file_as_root(self, tmp_path: Path, home: Path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(DetectionError):
            scan(path, home=home)

    def test_result_is_frozen(self, project: Path, home: Path):
        stack = scan(project, home=home)
        with pytest.raises(ValidationError):
            stack.go_module = "changed"

    def test_camel_case_serialization(self, project: Path, home: Path, make_file):
        make_file(project, "web/package.json", "{}")
        data = scan(project, home=home).model_dump(by_alias=True)

        assert "goModule" in data
        assert "mcpServers" in data
        assert "testCommands" in data["build"]
        assert data["languages"][0]["entryDir"] == "web"

    def test_deterministic(self, project: Path, home: Path, make_file):
        make_file(project, "package.json", '{"dependencies": {"vue": "3", "tailwindcss": "3"}}')
        make_file(project, "api/requirements.txt", "flask\n")

        assert scan(project, home=home) == scan(project, home=home)


class TestExistingArtifacts:
    def test_skills(self, project: Path, make_file):
        make_file(project, ".windsurf/skills/review/SKILL.md")
        make_file(project, ".cursor/skills/review/SKILL.md")
        make_file(project, ".cursor/skills/deploy/SKILL.md")
        (project / ".windsurf/skills/empty").mkdir()

        assert detect_skills(project, [WINDSURF, CURSOR, COPILOT]) == ["review", "deploy"]

    def test_specs(self, project: Path, make_file):
        make_file(project, ".windsurf/workflows/default-mode.md")
        make_file(project, ".windsurf/workflows/notes.txt")

        assert detect_specs(project, [WINDSURF, COPILOT]) == ["default-mode"]


class TestExclusions:
    def _generated_module(self, project: Path, make_file):
        make_file(project, "requirements.txt", "fastapi\n")
        make_file(project, "multiagency/go.mod", "module demo/multiagency\n\ngo 1.22\n")
        make_file(project, "multiagency/main.go", "package main\n")

    def test_excluded_dir_not_scanned(self, project: Path, home: Path, make_file):
        self._generated_module(project, make_file)

        stack = scan(project, home=home, exclude=["multiagency"])

        assert stack.language_names == ["python"]
        assert stack.go_module == ""
        assert "go build ./..." not in stack.build.commands

    def test_without_exclusion_module_is_seen(self, project: Path, home: Path, make_file):
        self._generated_module(project, make_file)

        stack = scan(project, home=home)
        assert stack.go_module == "demo/multiagency"

    def test_nested_exclusion(self, project: Path, make_file):
        make_file(project, "tools/agents/go.mod", "module x/agents\n")
        make_file(project, "tools/lib/go.mod", "module x/lib\n")

        assert detect_go_module(project, exclude=frozenset({"tools/agents"})) == "x/lib"

    def test_exclusion_paths_normalized(self, project: Path, home: Path, make_file):
        self._generated_module(project, make_file)

        stack = scan(project, home=home, exclude=["./multiagency/"])
        assert stack.go_module == ""

    def test_maturity_ignores_excluded_sources(self, project: Path, make_file):
        for i in range(9):
            make_file(project, f"src/m{i}.py")
        make_file(project, "multiagency/main.go", "package main\n")

        assert detect_maturity(project) == "active"
        assert detect_maturity(project, exclude=["multiagency"]) == "bootstrap"
