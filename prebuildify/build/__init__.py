"""
This module contains the build part of prebuildify (usable from the command line with `prebuildify build`).

It's separated into the following parts:

- build_processor.py: facade that builds the prebuilds configured in the settings
- builder.py: build configuration, node-gyp invocation and the loop that builds each target
- targets.py: resolution of the targets and the table of known targets with their ABI versions
- artifacts.py: finding, stripping and copying of the built modules and shared libraries
- errors.py: errors that abort a build
"""
