"""
bootforge - turn compiled unikernel binaries into bootable disk images.

Image construction is delegated to a disposable, privileged builder
container; bootforge owns the lifecycle around it:

- bootforge.runtimes: ContainerRuntime protocol, Docker API and CLI strategies
- bootforge.build: staging, the boot-creator recipe, the compile recipe
- bootforge.core: errors, settings, structured logging
- bootforge.cli: the ``bootforge`` command
"""

__version__ = "0.1.0"
