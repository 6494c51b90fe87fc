import re

from monoweave.engine import compute_staging_path, find_orphan_logs, find_staging_dirs


def test_compute_staging_path_format(tmp_path):
    output = tmp_path / "monorepo"
    staging = compute_staging_path(output)

    assert staging.parent == tmp_path
    assert re.fullmatch(r"monorepo\.staging-[0-9a-f]{8}", staging.name)
    assert compute_staging_path(output) != staging


def test_find_staging_dirs_matches_exact_pattern(tmp_path):
    output = tmp_path / "monorepo"
    (tmp_path / "monorepo.staging-abcdef12").mkdir()
    (tmp_path / "monorepo.staging-00000000").mkdir()
    # Not matches:
    (tmp_path / "monorepo.staging-ABCDEF99").mkdir()
    (tmp_path / "monorepo.staging-abc").mkdir()
    (tmp_path / "monorepo2.staging-abcdef12").mkdir()
    (tmp_path / "xmonorepo.staging-abcdef12").mkdir()
    (tmp_path / "monorepo.staging-abcdef12.ops.jsonl").write_text("")
    (tmp_path / "monorepo").mkdir()

    found = find_staging_dirs(output)

    assert [p.name for p in found] == [
        "monorepo.staging-00000000",
        "monorepo.staging-abcdef12",
    ]


def test_find_staging_dirs_escapes_regex_characters(tmp_path):
    output = tmp_path / "my.repo"
    (tmp_path / "my.repo.staging-11111111").mkdir()
    (tmp_path / "myxrepo.staging-22222222").mkdir()

    assert [p.name for p in find_staging_dirs(output)] == ["my.repo.staging-11111111"]


def test_find_staging_dirs_missing_parent(tmp_path):
    assert find_staging_dirs(tmp_path / "missing" / "monorepo") == []


def test_find_orphan_logs(tmp_path):
    output = tmp_path / "monorepo"
    (tmp_path / "monorepo.staging-aaaaaaaa").mkdir()
    (tmp_path / "monorepo.staging-aaaaaaaa.ops.jsonl").write_text("")
    (tmp_path / "monorepo.staging-bbbbbbbb.ops.jsonl").write_text("")
    (tmp_path / "other.staging-cccccccc.ops.jsonl").write_text("")

    assert [p.name for p in find_orphan_logs(output)] == [
        "monorepo.staging-bbbbbbbb.ops.jsonl"
    ]
