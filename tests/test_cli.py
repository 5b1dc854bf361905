# Copyright 2025 Google LLC.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import json
from unittest.mock import patch

from click.testing import CliRunner

from image_resolver.cli import cli
from image_resolver.data_models.enums import SearchOutcome
from image_resolver.data_models.results import ImageResult, SearchTraceEntry

IMAGE = "https://upload.wikimedia.org/wikipedia/commons/a/ab/Dallas.jpg"


def fake_resolve_images(results):
    async def _resolve(queries, settings=None, rejections=None, max_concurrent=None, on_result=None):
        _resolve.kwargs = {"rejections": rejections, "max_concurrent": max_concurrent}
        for result in results:
            on_result(result)
        return results

    return _resolve


def write_queries(tmp_path, records) -> str:
    path = tmp_path / "queries.json"
    path.write_text(json.dumps(records))
    return str(path)


class TestNormalizeCommand:
    def test_normalize(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["normalize", "rode fiets", "--language", "nl"])
        assert result.exit_code == 0
        assert result.output == "fiets\n"

    def test_normalize_default_language(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["normalize", "Kerstmis bij opa en oma"])
        assert result.exit_code == 0
        assert result.output.strip() == "Christmas"


class TestResolveCommand:
    def test_resolve_prints_results_and_writes_output(self, tmp_path):
        queries_file = write_queries(
            tmp_path,
            [{"eventId": "dallas", "imageSearchQuery": "Dallas", "isTV": True}],
        )
        rejections_file = tmp_path / "rejected.json"
        rejections_file.write_text(json.dumps(["https://x.test/bad.jpg"]))
        output_file = tmp_path / "results.json"
        results = [
            ImageResult(
                id="dallas",
                image_url=IMAGE,
                trace=(
                    SearchTraceEntry(
                        source="TMDB TV", query="Dallas", outcome=SearchOutcome.FOUND
                    ),
                ),
            )
        ]
        fake = fake_resolve_images(results)

        with patch("image_resolver.cli.resolve_images", new=fake):
            runner = CliRunner()
            result = runner.invoke(
                cli,
                [
                    "resolve",
                    queries_file,
                    "--max-concurrent",
                    "2",
                    "--rejections",
                    str(rejections_file),
                    "--output",
                    str(output_file),
                ],
            )

        assert result.exit_code == 0, result.output
        json_lines = [line for line in result.output.splitlines() if line.startswith("{")]
        first_line = json.loads(json_lines[0])
        assert first_line["id"] == "dallas"
        assert first_line["image_url"] == IMAGE
        assert first_line["trace"][0]["outcome"] == "found"
        assert fake.kwargs == {
            "rejections": frozenset({"https://x.test/bad.jpg"}),
            "max_concurrent": 2,
        }
        written = json.loads(output_file.read_text())
        assert written[0]["id"] == "dallas"

    def test_resolve_rejects_invalid_queries(self, tmp_path):
        queries_file = write_queries(tmp_path, [{"id": "1", "query": "  "}])

        with patch("image_resolver.cli.resolve_images") as mock_resolve:
            runner = CliRunner()
            result = runner.invoke(cli, ["resolve", queries_file])

        assert result.exit_code == 1
        assert "Query #0 is invalid" in result.output
        mock_resolve.assert_not_called()

    def test_resolve_rejects_duplicate_ids(self, tmp_path):
        queries_file = write_queries(
            tmp_path, [{"id": "1", "query": "Dallas"}, {"id": "1", "query": "Titanic"}]
        )

        runner = CliRunner()
        result = runner.invoke(cli, ["resolve", queries_file])

        assert result.exit_code == 1
        assert "Duplicate query id" in result.output

    def test_resolve_reports_bad_configuration(self, tmp_path, isolated_env):
        queries_file = write_queries(tmp_path, [{"id": "1", "query": "Dallas"}])

        with isolated_env({"IMAGE_RESOLVER_MODE": "bogus"}):
            runner = CliRunner()
            result = runner.invoke(cli, ["resolve", queries_file])

        assert result.exit_code == 1
        assert "IMAGE_RESOLVER_MODE must be one of" in result.output
