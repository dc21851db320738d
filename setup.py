import os

from setuptools import find_packages, setup


# Read README for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return "Rigid-body particle filter pose tracking on depth images"


setup(
    name="object-pose-tracker",
    version="1.0.0",
    description="Bayesian rigid-body object pose tracking in depth images",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    # Package configuration
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    # Include non-Python files
    include_package_data=True,
    package_data={
        "pose_tracker": ["config/*.yaml"],
    },
    install_requires=[
        "numpy",
        "scipy",
        "numba",
        "opencv-python",
        "pyyaml",
    ],
    extras_require={
        # CUDA observation model; pick the wheel matching the local toolkit
        "gpu": ["cupy-cuda12x"],
        "test": ["pytest"],
    },
    # Console scripts
    entry_points={
        "console_scripts": [
            "pose-tracker=pose_tracker.app.launcher:main",
        ],
    },
    # Metadata
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.11",
    keywords="pose tracking, particle filter, depth camera, rigid body, cuda",
)
