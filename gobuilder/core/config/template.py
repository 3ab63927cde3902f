"""Annotated starter config written by ``go-builder init``."""

EXAMPLE_CONFIG = """\
# .gobuilder.yml — go-builder configuration
#
# Placeholders:
#   ${VAR}            value of $VAR from the invoking shell (empty if unset)
#   ${VAR:-default}   value of $VAR if set and non-empty, otherwise "default"
#
# Usage:
#   go-builder                  build every target
#   go-builder build -n         print commands without running them
#   go-builder build -n --env all
#   go-builder config check     validate this file

# Where artifacts go: <build_dir>/<os>/<arch>/<output>
build_dir: builds

# Go package to compile
source: ./cmd/${MODULE_NAME:-myapp}

# Base file name of every binary (.exe is added for windows)
output: myapp-${VERSION:-dev}

# Environment for every target (per-target env wins on conflicts)
env:
  CGO_ENABLED: "${CGO_ENABLED:-0}"
  APP_ENV: prod

build:
  # Passed verbatim to -ldflags; a single string or a list
  ldflags: ["-s -w"]

  # Each entry becomes -X 'name=value'
  vars:
    main.version: "${VERSION:-dev}"
    main.commit: "${COMMIT_SHA:-local}"

  tags: ["prod"]        # -tags prod
  gcflags: ""           # -gcflags
  asmflags: ""          # -asmflags
  mod: ""               # -mod (mod, vendor, readonly)
  race: false           # -race
  trimpath: true        # -trimpath
  verbose: false        # -v

  debug: false          # true behaves like --dry-run

  # Fail when a built binary is dynamically linked (per-target override below)
  verify_static: false

# Uncomment to run the whole matrix inside a disposable container.
# docker:
#   image: docker.io/golang:1.23-alpine
#   workdir: /workspace
#   shell: sh
#   setup:
#     - apk add --no-cache git build-base
#     - pip install go-builder
#   env:
#     GOFLAGS: -buildvcs=false

targets:
  - os: linux
    arch: amd64
    verify_static: true
    env:
      GOAMD64: v2

  - os: darwin
    arch: arm64

  - os: windows
    arch: amd64
    env:
      CC: x86_64-w64-mingw32-gcc
"""
