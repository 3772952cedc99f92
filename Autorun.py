#!/usr/bin/env python3
"""
Autorun.py

Setup & run helper for EVInsight.

- Creates a virtual environment in `.venv` (if missing)
- Upgrades pip/setuptools/wheel and installs the project with its frontend and test extras
- Runs the backend (uvicorn) and frontend (streamlit) locally and restarts a crashed process once per check
- Runs the test suite
"""
from __future__ import annotations

import argparse
import os
import subprocess
import sys
import time
import shutil
import logging
from pathlib import Path
from typing import List

ROOT = Path(__file__).resolve().parent
VENV_DIR = ROOT / ".venv"
LOG_DIR = ROOT / "logs"
LOG_DIR.mkdir(exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    handlers=[
        logging.FileHandler(LOG_DIR / "autorun.log"),
        logging.StreamHandler(sys.stdout),
    ],
)


def run_cmd(cmd: List[str], cwd: Path | None = None, env=None, check: bool = True, timeout: int | None = None):
    logging.info("Run: %s", " ".join(cmd))
    try:
        res = subprocess.run(cmd, cwd=cwd, env=env, check=check, capture_output=True, text=True, timeout=timeout)
        if res.stdout:
            logging.debug(res.stdout)
        if res.stderr:
            logging.debug(res.stderr)
        return res.returncode, res.stdout, res.stderr
    except subprocess.CalledProcessError as e:
        logging.error("Command failed (%s): %s", e.returncode, e.stderr)
        return e.returncode, e.stdout, e.stderr
    except (OSError, subprocess.TimeoutExpired) as e:
        logging.exception("Command error: %s", e)
        return 2, "", str(e)


def create_venv(path: Path = VENV_DIR):
    if path.exists():
        logging.info("Virtualenv already exists at %s", path)
        return
    logging.info("Creating virtualenv at %s", path)
    subprocess.check_call([sys.executable, "-m", "venv", str(path)])
    logging.info("Virtualenv created")


def get_venv_python(path: Path = VENV_DIR) -> str:
    if os.name == "nt":
        return str(path / "Scripts" / "python.exe")
    return str(path / "bin" / "python")


def upgrade_pip(python: str):
    logging.info("Upgrading pip, setuptools and wheel in venv")
    run_cmd([python, "-m", "pip", "install", "--upgrade", "pip", "setuptools", "wheel"])


def install_project(python: str):
    logging.info("Installing EVInsight with frontend and test extras")
    code, out, err = run_cmd([python, "-m", "pip", "install", "-e", ".[frontend,test]"], cwd=ROOT)
    if code != 0:
        logging.warning("pip install failed (code=%s). Upgrading pip and retrying with binary wheels only.", code)
        upgrade_pip(python)
        code2, out2, err2 = run_cmd([python, "-m", "pip", "install", "-e", ".[frontend,test]", "--only-binary=:all:"], cwd=ROOT)
        if code2 != 0:
            logging.error("Retry also failed, see logs/autorun.log")
        else:
            logging.info("Install succeeded on retry with --only-binary")
    else:
        logging.info("Installed project")


def start_process(cmd: List[str], cwd: Path | None = None, env=None) -> subprocess.Popen:
    logging.info("Starting process: %s", " ".join(cmd))
    return subprocess.Popen(cmd, cwd=cwd, env=env)


def run_local_stack(python: str):
    procs = {}
    env = os.environ.copy()
    env["PYTHONUNBUFFERED"] = "1"
    # Make the backend package importable even without an editable install
    backend_path = str(ROOT / "backend")
    prev_pythonpath = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = backend_path + (os.pathsep + prev_pythonpath if prev_pythonpath else "")

    commands = {
        'backend': ([python, "-m", "uvicorn", "evinsight.main:app", "--host", "0.0.0.0", "--port", "8000"], ROOT / "backend"),
        'frontend': ([python, "-m", "streamlit", "run", "frontend/app.py", "--server.port", "8501"], ROOT),
    }
    for name, (cmd, cwd) in commands.items():
        procs[name] = start_process(cmd, cwd=cwd, env=env)

    logging.info("Local stack started. Monitoring processes... (Ctrl-C to quit)")

    try:
        while True:
            for name, p in list(procs.items()):
                ret = p.poll()
                if ret is not None:
                    logging.warning("Process %s exited with code %s, restarting", name, ret)
                    cmd, cwd = commands[name]
                    procs[name] = start_process(cmd, cwd=cwd, env=env)
            time.sleep(3)
    except KeyboardInterrupt:
        logging.info("Shutting down processes...")
        for p in procs.values():
            p.terminate()


def run_tests():
    logging.info("Running test suite (pytest)")
    if shutil.which("pytest") is None:
        python = get_venv_python()
        return run_cmd([python, "-m", "pytest", "-q"], cwd=ROOT, check=False)
    return run_cmd(["pytest", "-q"], cwd=ROOT, check=False)


def quick_summary():
    logging.info("Project root: %s", ROOT)
    logging.info("Venv dir: %s", VENV_DIR)
    logging.info("Python: %s", sys.executable)


def main():
    parser = argparse.ArgumentParser(description="Autorun helper for EVInsight")
    parser.add_argument("action", nargs="?", default="all", choices=["all", "venv", "install", "local", "tests"], help="action to run")
    args = parser.parse_args()

    quick_summary()

    if args.action in ("all", "venv"):
        create_venv()

    python = get_venv_python()

    if args.action in ("all", "install"):
        upgrade_pip(python)
        install_project(python)

    if args.action in ("all", "local"):
        run_local_stack(python)

    if args.action == "tests":
        code, out, err = run_tests()
        if code == 0:
            logging.info("Tests passed")
        else:
            logging.error("Tests failed:\n%s", out)


if __name__ == "__main__":
    main()
