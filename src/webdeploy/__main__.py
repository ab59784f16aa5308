"""Allow ``python -m webdeploy``."""
from webdeploy import main

if __name__ == '__main__':
    main()
