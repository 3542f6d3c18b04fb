"""Configuration — npmbuild.yml loading."""
