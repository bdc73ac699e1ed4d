from services.analyzer import (
    extract_cargo_dependencies,
    extract_dependencies,
    extract_gem_dependencies,
    extract_go_dependencies,
    extract_npm_dependencies,
    extract_pip_dependencies,
)


def test_npm_dependencies_then_dev_dependencies():
    content = '{"dependencies": {"react": "^18", "@angular/core": "17"}, "devDependencies": {"vite": "5"}}'
    assert extract_npm_dependencies(content) == ["react", "@angular/core", "vite"]


def test_npm_invalid_json():
    assert extract_npm_dependencies("{nope") == []
    assert extract_npm_dependencies("[]") == []


def test_pip_requirements():
    content = """
# web
Django>=4.2
requests==2.31.0
numpy~=1.26
black!=23.1
pytest<8
  flask
"""
    assert extract_pip_dependencies(content) == ["Django", "requests", "numpy", "black", "pytest", "flask"]


def test_go_mod_block_and_single_line():
    content = """module example.com/app

go 1.22

require github.com/spf13/cobra v1.8.0

require (
    github.com/gin-gonic/gin v1.9.1
    // tooling
    gorm.io/gorm v1.25.0 // indirect
)
"""
    assert extract_go_dependencies(content) == [
        "github.com/spf13/cobra",
        "github.com/gin-gonic/gin",
        "gorm.io/gorm",
    ]


def test_cargo_dependencies_section_only():
    content = """[package]
name = "tool"
version = "0.1.0"

[dependencies]
serde = { version = "1", features = ["derive"] }
tokio = "1"

[dev-dependencies]
criterion = "0.5"
"""
    assert extract_cargo_dependencies(content) == ["serde", "tokio"]


def test_gemfile():
    content = """source "https://rubygems.org"
gem 'rails', '~> 7.1'
gem "pg"
  gem 'puma'
"""
    assert extract_gem_dependencies(content) == ["rails", "pg", "puma"]


def test_extract_dependencies_by_filename():
    key_files = {
        "package.json": '{"dependencies": {"express": "4"}}',
        "requirements.txt": "# only comments\n",
        "Gemfile": "gem 'sinatra'\n",
        "Dockerfile": "FROM python:3.12\n",
    }
    assert extract_dependencies(key_files) == {"npm": ["express"], "gem": ["sinatra"]}
