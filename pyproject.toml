[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gatewaysamples"
version = "1.0.0"
description = "In-memory sample services for exercising an API gateway: route guide, echo, user cache, user provider and a mock REST backend."
requires-python = ">=3.10"
dependencies = []
keywords = ["gateway", "http", "wsgi", "sample", "mock", "backend", "route-guide", "echo"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gatewaysamples-user-server = "gatewaysamples.usercache:main"
gatewaysamples-mock-backend = "gatewaysamples.mockbackend:main"

[tool.hatch.build.targets.wheel]
packages = ["gatewaysamples"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
