from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--width", "160", "--height", "160", "--max-iterations", "200"]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", *self.args, "--output", str(self.output)]


def _example(name: str, filename: str, *args: str) -> Example:
    return Example(name=name, args=[*BASE_ARGS, *args], output=EXAMPLES_ROOT / name / filename)


EXAMPLES: list[Example] = [
    _example("default-window", "full-set.png"),
    _example("max-iterations", "low-iterations.png", "--max-iterations", "25"),
    _example("width", "wide.png", "--width", "240"),
    _example("height", "short.png", "--height", "96"),
    _example("seahorse-valley", "seahorse.png",
             "--min-real", "-0.8", "--max-real", "-0.7", "--min-imag", "0.05", "--max-imag", "0.15"),
    _example("elephant-valley", "elephant.png",
             "--min-real", "0.25", "--max-real", "0.35", "--min-imag", "-0.05", "--max-imag", "0.05"),
    _example("python-backend", "sequential.png", "--backend", "python", "--width", "64", "--height", "64"),
    _example("verbose", "diagnostic.png", "--verbose"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _ensure_clean([example.output.parent])
        example.output.parent.mkdir(parents=True, exist_ok=True)
        subprocess.run(example.full_args(), check=True)
        if not example.output.is_file():
            raise RuntimeError(f"Expected file {example.output} was not created")
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
