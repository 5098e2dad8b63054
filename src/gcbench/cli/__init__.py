# Copyright (c) Syntropy Systems
