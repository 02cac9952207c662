from setuptools import setup, find_packages

setup(
    name="salepages",
    version="0.1.0",
    packages=find_packages(include=["salepages", "salepages.*"]),
    package_data={"salepages": ["templates/*.html"]},
    install_requires=[
        "flask",
        "werkzeug",
        "jinja2",
        "redis",
        "prometheus-client",
        "python-json-logger",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
