"""
Demo: several concurrent jobs sharing one console, each captured separately.

    python -m taskconsole --jobs 3 --steps 5

Every job logs through the shared `console` as if it owned the terminal. Each
one runs hooked to its own CaptureConsole, so nothing it prints reaches the
screen while the jobs run; the main task meanwhile keeps a single progress
line updated in place with fresh_line(). When all jobs are done, each job's
transcript is shown in its own panel.
"""

import argparse
import asyncio

from rich import box
from rich.panel import Panel
from rich.text import Text

from .capture import CaptureConsole
from .console import console


async def run_job(name: str, steps: int, delay: float) -> None:
    console.log("%s: starting", name)
    for step in range(1, steps + 1):
        console.fresh_line("progress", f"{name}: step {step}/{steps}")
        await asyncio.sleep(delay)
    console.info("%s: finished %d steps", name, steps)


async def run_jobs(jobs: int, steps: int, delay: float) -> list[CaptureConsole]:
    """Run `jobs` jobs concurrently and return their captures, in job order."""
    # Transcripts are read back later, so record progress as plain lines
    captures = [
        CaptureConsole(real_console_output=False, supports_ansi=False) for _ in range(jobs)
    ]
    tasks = [
        asyncio.create_task(
            capture.hook_async_context(run_job, f"job-{index}", steps, delay * index)
        )
        for index, capture in enumerate(captures, start=1)
    ]

    while True:
        finished = sum(task.done() for task in tasks)
        console.fresh_line("jobs", f"{finished}/{len(tasks)} jobs finished")
        if finished == len(tasks):
            break
        await asyncio.sleep(delay)

    await asyncio.gather(*tasks)
    return captures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="taskconsole",
        description="Run concurrent jobs with per-job console capture.",
    )
    parser.add_argument("--jobs", type=int, default=3, help="number of concurrent jobs")
    parser.add_argument("--steps", type=int, default=5, help="steps per job")
    parser.add_argument("--delay", type=float, default=0.1, help="seconds per step of job 1")
    args = parser.parse_args(argv)

    if args.jobs < 1 or args.steps < 1 or args.delay < 0:
        parser.error("--jobs and --steps must be positive and --delay non-negative")

    captures = asyncio.run(run_jobs(args.jobs, args.steps, args.delay))

    for index, capture in enumerate(captures, start=1):
        console.print(
            Panel(
                Text(capture.outputs.rstrip("\n")),
                title=f"job-{index}",
                box=box.ROUNDED,
                expand=False,
            )
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
