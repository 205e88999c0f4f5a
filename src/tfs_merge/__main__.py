from tfs_merge import main

main()
