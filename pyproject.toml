[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "harness"
version = "0.1.0"
description = "Mailbox and Kanban board domains with logged command/query handlers, an in-process event bus, command-line front ends and a Postmark inbound webhook."
requires-python = ">=3.10"
dependencies = [
    "werkzeug",
]
keywords = [
    "email",
    "mailbox",
    "postmark",
    "webhook",
    "kanban",
    "cqrs",
    "event-bus",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Email",
    "Topic :: Office/Business :: Scheduling",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["harness"]

[tool.hatch.build.targets.sdist]
include = [
    "harness",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
