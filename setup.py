from setuptools import setup, find_packages

setup(
    name='hand-tracking-receiver',
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.24',
        'opencv-python>=4.8',
    ],
    extras_require={
        'tracker': ['mediapipe>=0.10'],
        'test': ['pytest>=7.0'],
    },
    zip_safe=True,
    description='UDP hand landmark receiver with pluggable renderers',
    license='MIT',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'hand-tracking-receiver = hand_tracking.main:main',
            'hand-tracking-demo = hand_tracking.sender:main',
            'hand-tracking-tracker = hand_tracking.tracker:main',
        ],
    },
)
