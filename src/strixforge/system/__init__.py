#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#
