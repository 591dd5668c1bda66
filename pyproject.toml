[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "textkernel"
version = "0.1.0"
description = "A model of a small teaching kernel: read-only boot-image file system, PIC, IDT, text console, keyboard and host program runner"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "emulator", "filesystem", "vga", "keyboard", "idt", "pic"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["textkernel"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
