[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "topohub"
version = "0.1.0"
description = "Admission validation and defaulting for subnets, binding IPs, host endpoints and BMC status resources"
requires-python = ">=3.10"
keywords = ["admission", "validation", "subnet", "dhcp", "redfish", "bmc", "ip-range"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: System :: Networking",
]
dependencies = [
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["topohub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
