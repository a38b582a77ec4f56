"""Install the game manager OAuth2 login service."""

from setuptools import setup, find_packages

setup(
    name='gamemanager-oauth2',
    version='0.1.0',
    packages=find_packages(include=['gamemanager_oauth2', 'gamemanager_oauth2.*'],
                           exclude=['*tests*']),
    python_requires='>=3.9',
    install_requires=[
        "fastapi>=0.100",
        "httpx",
        "psycopg2-binary",
        "pydantic>=2",
        "pydantic-settings>=2.7",
        "pyjwt>=2.4",
        "python-json-logger",
        "sqlalchemy>=2.0",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest", "hypothesis", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "gamemanager-oauth2=gamemanager_oauth2.__main__:main",
        ],
    },
    zip_safe=False
)
