#!/usr/bin/env python3
"""Start the API with its push runner.

The push queue lives in this process, so always run exactly one worker.
"""

import os
import sys

import uvicorn

if __name__ == '__main__':
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', '3000'))
    reload = '--reload' in sys.argv[1:]

    uvicorn.run(
        'pim_sync.main:app',
        host=host,
        port=port,
        workers=1,
        reload=reload,
        log_level=os.getenv('LOG_LEVEL', 'info').lower(),
    )
