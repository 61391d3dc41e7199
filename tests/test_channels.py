from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from cli import main
from parse.channels import channel_element_types, channel_operations
from program.loader import load_program

WORKER_SOURCE = """package worker

type Event struct{ Name string }

type Pool struct {
	events chan Event
	done   chan struct{}
}

func NewPool() *Pool {
	return &Pool{events: make(chan Event, 8), done: make(chan struct{})}
}

func (p *Pool) Run(jobs <-chan int, results chan<- int) {
	for job := range jobs {
		results <- job * 2
	}
	close(results)
}

func (p *Pool) Loop() {
	for {
		select {
		case ev := <-p.events:
			_ = ev
		case p.events <- Event{}:
		case <-p.done:
			return
		}
	}
}

func (p *Pool) Stop() {
	p.done <- struct{}{}
	<-p.done
}

func drain(items []int) int {
	total := 0
	for _, item := range items {
		total += item
	}
	return total
}
"""


def _write_module(root: Path) -> None:
    (root / "go.mod").write_text("module example.com/chans\n", encoding="utf-8")
    (root / "worker").mkdir()
    (root / "worker" / "worker.go").write_text(WORKER_SOURCE, encoding="utf-8")
    (root / "idle").mkdir()
    (root / "idle" / "idle.go").write_text(
        "package idle\n\nfunc Nothing() {}\n", encoding="utf-8"
    )


def _worker_files(root: Path):  # noqa: ANN202
    _write_module(root)
    program = load_program(root)
    package = program.find_package("worker")
    return list(package.files)


def test_element_types_from_declarations(tmp_path: Path) -> None:
    element_types = channel_element_types(_worker_files(tmp_path))

    assert element_types == {
        "events": "Event",
        "done": "struct{}",
        "jobs": "int",
        "results": "int",
    }


def test_channel_operations_in_source_order(tmp_path: Path) -> None:
    ops = channel_operations(_worker_files(tmp_path))

    assert [(op.kind, op.channel, op.owner) for op in ops] == [
        ("make", "events", "NewPool"),
        ("make", "done", "NewPool"),
        ("range", "jobs", "Pool.Run"),
        ("send", "results", "Pool.Run"),
        ("close", "results", "Pool.Run"),
        ("select_receive", "p.events", "Pool.Loop"),
        ("select_send", "p.events", "Pool.Loop"),
        ("select_receive", "p.done", "Pool.Loop"),
        ("send", "p.done", "Pool.Stop"),
        ("receive", "p.done", "Pool.Stop"),
    ]
    assert ops[3].operation == "results <- job * 2"
    assert ops[3].location == "worker/worker.go:16"
    assert ops[2].operation == "job := range jobs"


def test_range_over_slice_is_not_a_channel_op(tmp_path: Path) -> None:
    ops = channel_operations(_worker_files(tmp_path))

    assert not any(op.channel == "items" for op in ops)


def test_cli_channels_groups_by_channel(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_module(tmp_path)

    exit_code = main(["channels", "worker", "--json", "--root", str(tmp_path)])

    assert exit_code == 0
    payload = orjson.loads(capsys.readouterr().out)
    [worker] = payload["packages"]
    assert [g["channel"] for g in worker["channels"]] == [
        "done",
        "events",
        "jobs",
        "results",
    ]
    done = worker["channels"][0]
    assert done["element_type"] == "struct{}"
    assert [op["operation"] for op in done["makes"]] == ["make(chan struct{})"]
    assert [op["symbol"] for op in done["sends"]] == ["worker.Pool.Stop"]
    assert len(done["receives"]) == 1
    assert len(done["select_receives"]) == 1
    assert payload["summary"]["total"] == 10
    assert payload["summary"]["by_kind"]["select_receive"] == 2


def test_cli_channels_text_covers_scope(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_module(tmp_path)

    exit_code = main(["channels", "--root", str(tmp_path)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "idle:\n  (no channel operations)" in out
    assert "  events (chan Event)" in out
    assert "    close  close(results)  // worker/worker.go:18" in out
    assert out.splitlines()[-1] == "10 channel operations"


def test_cli_channels_unknown_package_exits_one(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_module(tmp_path)

    exit_code = main(["channels", "wroker", "--root", str(tmp_path)])

    assert exit_code == 1
    assert "package not found: wroker" in capsys.readouterr().out
