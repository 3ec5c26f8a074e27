[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smstool"
version = "1.0.0"
description = "Send, read and delete SMS messages, query storage, run USSD codes and AT commands on serial modems"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["sms", "pdu", "gsm", "ussd", "modem", "at-commands", "serial"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sms_tool = "smstool.cli:main"
pdu_decoder = "smstool.decoder:main"

[tool.hatch.build.targets.wheel]
packages = ["smstool"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
