[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ulaunch"
version = "0.1.0"
description = "Home menu data layer: title lists, themes, configuration, user passwords and menu/daemon command messages"
requires-python = ">=3.10"
dependencies = []
keywords = ["home-menu", "launcher", "themes", "homebrew", "nro"]
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
    "Topic :: Desktop Environment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ulaunch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
