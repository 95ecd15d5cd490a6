from setuptools import setup

setup(
    name='atmfjstc-nt-security',
    version='0.1.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=['atmfjstc.lib.nt_security'],

    install_requires=[
        'atmfjstc-binary-utils>=1.2.0, <2',
    ],

    zip_safe=True,

    description="Decoder for Windows NT Security Descriptors, ACLs, ACEs and SIDs in their binary self-relative form",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: System :: Filesystems",
        "Topic :: Security",
        "Typing :: Typed",
    ],
    python_requires='>=3.7',
)
