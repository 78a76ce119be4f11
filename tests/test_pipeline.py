"""End-to-end pipeline tests: sources → store → revisions → published set."""

from pathlib import Path

import pytest

from quire.config import QuireConfig
from quire.content import DocumentStatus, SourceUnit
from quire.errors import ConfigError, IdCollisionError
from quire.pipeline import build_site, run_pipeline
from quire.publish import PublishConfig

ESSAY = (
    "A fair bet has zero expected value, but a gambler with limited money facing "
    "an opponent with unlimited money will be ruined eventually. The chance of "
    "ruin grows with every round played, and no betting system changes the "
    "arithmetic of a fair game because each round is independent of the last. "
    "What matters is not the expectation of a single bet but the path the "
    "bankroll takes over many bets, and that path ends at zero far more often "
    "than intuition suggests."
)
ESSAY_EXTRA = (
    "\n\nEven worse, the pleasure of winning a dollar is smaller than the pain of "
    "losing one, so a fair game is a bad deal in terms of utility."
)


def _post(title: str, date: str, body: str) -> str:
    return f"---\nlayout: post\ntitle: \"{title}\"\ndate: {date}\n---\n\n{body}\n"


def _corpus() -> tuple[list[SourceUnit], list[SourceUnit]]:
    published = [
        SourceUnit(
            name="2018-10-10-fair-gambling.md",
            text=_post("Fair Gambling Isn't a Good Idea", "2018-10-10", ESSAY),
        ),
        SourceUnit(
            name="2018-10-10-why-fair-gambling.md",
            text=_post("Why Fair Gambling Isn't a Good Idea", "2018-10-10", ESSAY + ESSAY_EXTRA),
        ),
        SourceUnit(
            name="2017-05-01-arithmetics-without-plus.md",
            text=_post("Arithmetics Without Plus", "2017-05-01", ESSAY.replace("bet", "sum")),
        ),
        SourceUnit(
            name="2020-05-17-knots.md",
            text=_post("Climbing Knots", "2020-05-17", "The figure eight is easy to check."),
        ),
        SourceUnit(name="2016-01-01-broken.md", text="---\ntitle: Broken\nno end in sight\n"),
    ]
    drafts = [
        SourceUnit(
            name="arithmetics-without-plus.md",
            text=_post(
                "Arithmetics Without Plus", "2021-01-01", ESSAY.replace("bet", "sum") + ESSAY_EXTRA
            ),
        ),
        SourceUnit(name="ui-architecture.md", text=_post("UI Architecture", "2022-02-02", "Draft.")),
    ]
    return published, drafts


class TestRunPipeline:
    def test_fair_gambling_merged_longer_canonical(self):
        result = run_pipeline(*_corpus())
        cluster = next(c for c in result.clusters if "2018-10-10-fair-gambling" in c.member_ids)
        assert cluster.member_ids == [
            "2018-10-10-fair-gambling",
            "2018-10-10-why-fair-gambling",
        ]
        assert cluster.canonical_id == "2018-10-10-why-fair-gambling"
        assert "2018-10-10-fair-gambling" not in result.published.ids
        # Non-canonical members stay in the store.
        kept = result.store.get("2018-10-10-fair-gambling")
        assert kept is not None
        assert kept.canonical is False
        assert kept.revision_group_id == "2018-10-10-why-fair-gambling"

    def test_published_arithmetics_beats_newer_draft(self):
        result = run_pipeline(*_corpus())
        cluster = next(c for c in result.clusters if "arithmetics-without-plus" in c.member_ids)
        assert cluster.canonical_id == "2017-05-01-arithmetics-without-plus"

    def test_malformed_excluded_run_completes(self):
        result = run_pipeline(*_corpus())
        assert not result.store.exists("2016-01-01-broken")
        assert [e.source for e in result.report.by_stage("parse")] == ["2016-01-01-broken.md"]
        assert len(result.published.documents) == 3

    def test_unique_title_published(self):
        result = run_pipeline(*_corpus())
        assert "2020-05-17-knots" in result.published.ids

    def test_no_drafts_by_default(self):
        result = run_pipeline(*_corpus())
        for doc_id in result.published.ids:
            assert result.store.get(doc_id).status == DocumentStatus.PUBLISHED

    def test_include_drafts(self):
        config = QuireConfig(publish=PublishConfig(include_drafts=True))
        result = run_pipeline(*_corpus(), config)
        assert "ui-architecture" in result.published.ids
        # Non-canonical drafts stay out when deduping.
        assert "arithmetics-without-plus" not in result.published.ids

    def test_newest_first(self):
        result = run_pipeline(*_corpus())
        assert result.published.ids == [
            "2020-05-17-knots",
            "2018-10-10-why-fair-gambling",
            "2017-05-01-arithmetics-without-plus",
        ]

    def test_every_group_has_exactly_one_canonical(self):
        result = run_pipeline(*_corpus())
        for cluster in result.clusters:
            members = [result.store.get(m) for m in cluster.member_ids]
            assert sum(1 for m in members if m.canonical) == 1
            assert all(m.revision_group_id == cluster.group_id for m in members)

    def test_deterministic(self):
        assert run_pipeline(*_corpus()).clusters == run_pipeline(*_corpus()).clusters

    def test_collision_aborts(self):
        published, drafts = _corpus()
        drafts.append(SourceUnit(name="2020-05-17-knots.md", text="---\ntitle: Again\n---\n"))
        with pytest.raises(IdCollisionError):
            run_pipeline(published, drafts)

    def test_invalid_detector_config_fails_before_loading(self):
        config = QuireConfig()
        config.detector.threshold = 7.0
        with pytest.raises(ConfigError):
            run_pipeline(*_corpus(), config)


class TestBuildSite:
    def _write_corpus(self, root: Path) -> None:
        published, drafts = _corpus()
        for folder, units in (("_posts", published), ("_drafts", drafts)):
            (root / folder).mkdir(parents=True)
            for unit in units:
                (root / folder / unit.name).write_text(unit.text, encoding="utf-8")

    def test_writes_html_site(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        result = build_site(tmp_path)
        site = tmp_path / "_site"
        assert (site / "index.html").exists()
        assert (site / "2020-05-17-knots.html").exists()
        assert not (site / "ui-architecture.html").exists()
        assert len(result.written) == 4

    def test_dry_run_writes_nothing(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        result = build_site(tmp_path, dry_run=True)
        assert result.written == []
        assert not (tmp_path / "_site").exists()

    def test_explicit_output_dir(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        out = tmp_path / "public"
        build_site(tmp_path, output_dir=out)
        assert (out / "index.html").exists()

    def test_missing_collections(self, tmp_path: Path):
        result = build_site(tmp_path)
        assert result.pipeline.published.documents == []
        assert [p.name for p in result.written] == ["index.html"]

    def test_index_post_aborts_before_writing(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        (tmp_path / "_posts" / "index.md").write_text(
            "---\ntitle: Home\n---\nUNIQUE ESSAY BODY\n", encoding="utf-8"
        )
        with pytest.raises(IdCollisionError) as exc_info:
            build_site(tmp_path)
        assert exc_info.value.doc_id == "index"
        assert "_posts/index.md" in str(exc_info.value)
        assert not (tmp_path / "_site").exists()

    def test_collision_names_collection_paths(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        (tmp_path / "_drafts" / "2020-05-17-knots.md").write_text(
            "---\ntitle: Climbing Knots\n---\nRevised.\n", encoding="utf-8"
        )
        with pytest.raises(IdCollisionError) as exc_info:
            build_site(tmp_path)
        assert exc_info.value.first_source == "_posts/2020-05-17-knots.md (published)"
        assert exc_info.value.second_source == "_drafts/2020-05-17-knots.md (draft)"

    def test_undecodable_source_excluded(self, tmp_path: Path):
        self._write_corpus(tmp_path)
        (tmp_path / "_posts" / "bad.md").write_bytes(b"\xff\xfe caf\xe9")
        result = build_site(tmp_path)
        report = result.pipeline.report
        assert [e.source for e in report.by_stage("parse")] == [
            "_posts/bad.md",
            "_posts/2016-01-01-broken.md",
        ]
        assert (tmp_path / "_site" / "2020-05-17-knots.html").exists()

    def test_forged_placeholder_text_renders(self, tmp_path: Path):
        (tmp_path / "_posts").mkdir()
        (tmp_path / "_posts" / "tokens.md").write_text(
            "---\ntitle: Tokens\n---\nThe token QUIREMATH7END appears here.\n", encoding="utf-8"
        )
        result = build_site(tmp_path)
        assert not result.pipeline.report.has_errors
        page = (tmp_path / "_site" / "tokens.html").read_text(encoding="utf-8")
        assert "QUIREMATH7END" in page
