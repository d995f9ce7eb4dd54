[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scira-proxy"
version = "0.1.0"
description = "OpenAI-compatible chat completions API server that forwards requests to the Scira chat service"
requires-python = ">=3.10"
keywords = ["openai", "chat", "proxy", "api", "server-sent-events", "flask"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "requests",
    "python-dotenv",
    "termcolor",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
scira-proxy = "scira_proxy.app:main"

[tool.hatch.build.targets.wheel]
packages = ["scira_proxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
