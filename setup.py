from setuptools import setup, find_packages


setup(
    name='QueryLens',
    version='0.1.0',
    packages=find_packages(where='.', include=['QueryLens', 'QueryLens.*']),
    package_dir={"": "."},
    install_requires=[
        'pandas',
        'tqdm',
        'openpyxl',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description="A library for analyzing distributed query engine profiles",
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.11',
    entry_points={
        "console_scripts": [
            "QueryLens_generate_perf_report = QueryLens.Reporting.generate_perf_report_query_profile:main",
            "QueryLens_generate_perf_report_multiple_profiles = QueryLens.Reporting.generate_perf_report_multiple_query_profiles:main",
        ],
    },
)
